"""Identifier helpers shared across providers"""

import base64
import binascii
import re
from urllib.parse import urlparse


def encrypt_id(value: str) -> str:
    """Encode a Plaid account id into a shareable, URL-safe token"""
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii")


def decrypt_id(token: str) -> str:
    """
    Decode a shareable id back into a Plaid account id.

    Raises:
        ValueError: If the token is not valid base64
    """
    if not re.fullmatch(r"[A-Za-z0-9_-]+={0,2}", token):
        raise ValueError(f"Invalid shareable id: {token!r}")

    stripped = token.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError(f"Invalid shareable id: {token!r}") from e


def extract_customer_id_from_url(url: str) -> str:
    """Dwolla resource URLs end with the resource id"""
    path = urlparse(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1]
