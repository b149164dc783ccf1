"""Dwolla client for customers, funding sources and transfers, with retry logic"""

import asyncio
import logging
import time
import uuid
import httpx
from typing import Any, Dict
from horizon.config import settings
from horizon.domain.exceptions import ProcessorError
from horizon.infrastructure.observability.metrics import (
    dwolla_retry_counter,
    upstream_failure_counter,
    upstream_latency_histogram,
)

logger = logging.getLogger(__name__)

DWOLLA_ENVIRONMENTS = {
    "sandbox": "https://api-sandbox.dwolla.com",
    "production": "https://api.dwolla.com",
}

HAL_JSON = "application/vnd.dwolla.v1.hal+json"


class DwollaClient:
    """Client for the Dwolla API using the client-credentials grant"""

    def __init__(
        self,
        key: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key = key or settings.dwolla_key
        self.secret = secret or settings.dwolla_secret
        env = environment or settings.dwolla_env
        if env not in DWOLLA_ENVIRONMENTS:
            raise ValueError(f"Unknown Dwolla environment: {env}")
        self.base_url = DWOLLA_ENVIRONMENTS[env]
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.dwolla_max_retries
        self.backoff_base = settings.dwolla_backoff_base
        self.transport = transport

        self._token: str | None = None
        self._token_expires_at = 0.0

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        """Fetch an application token, reusing it until shortly before expiry"""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = await client.post(
            f"{self.base_url}/token",
            data={"grant_type": "client_credentials"},
            auth=(self.key, self.secret),
        )
        response.raise_for_status()
        data = response.json()

        self._token = data["access_token"]
        self._token_expires_at = time.monotonic() + data.get("expires_in", 3600) - 60
        return self._token

    async def _post(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        """
        POST a resource with retry logic.

        Retry strategy:
        - One Idempotency-Key per logical request, so retries never double-create
        - Exponential backoff: base, 2*base, 4*base ...
        - Retries on 5xx errors and network failures; 4xx fails immediately

        Raises:
            ProcessorError: When the request is rejected or retries are exhausted
        """
        idempotency_key = str(uuid.uuid4())
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        attempt = 0

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    token = await self._access_token(client)
                    with upstream_latency_histogram.labels(provider="dwolla").time():
                        response = await client.post(
                            url,
                            json=body,
                            headers={
                                "Authorization": f"Bearer {token}",
                                "Accept": HAL_JSON,
                                "Content-Type": HAL_JSON,
                                "Idempotency-Key": idempotency_key,
                            },
                        )
                    response.raise_for_status()
                    return response

                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        upstream_failure_counter.labels(provider="dwolla").inc()
                        raise ProcessorError(
                            f"Dwolla rejected {path}: {e.response.status_code} {_error_message(e.response)}"
                        ) from e
                    error: Exception = e
                except httpx.RequestError as e:
                    error = e
                except (KeyError, ValueError) as e:
                    upstream_failure_counter.labels(provider="dwolla").inc()
                    raise ProcessorError(f"Invalid token response from Dwolla: {e}") from e

                attempt += 1
                if attempt >= self.max_retries:
                    upstream_failure_counter.labels(provider="dwolla").inc()
                    raise ProcessorError(f"Dwolla {path} failed after {attempt} attempts: {error}") from error

                backoff = self.backoff_base * (2 ** (attempt - 1))
                dwolla_retry_counter.inc()
                logger.warning(f"Dwolla {path} attempt {attempt} failed, retrying in {backoff}s")
                await asyncio.sleep(backoff)

    @staticmethod
    def _location(response: httpx.Response) -> str:
        location = response.headers.get("location")
        if not location:
            raise ProcessorError("Dwolla response has no Location header")
        return location

    async def create_customer(self, customer: Dict[str, Any]) -> str:
        """Create a verified personal customer; returns the customer URL"""
        response = await self._post("/customers", customer)
        return self._location(response)

    async def create_on_demand_authorization(self) -> Dict[str, Any]:
        """Returns the ``_links`` needed to attach a funding source"""
        response = await self._post("/on-demand-authorizations", {})
        try:
            return response.json()["_links"]
        except (KeyError, ValueError) as e:
            raise ProcessorError("Invalid on-demand authorization response") from e

    async def create_funding_source(
        self,
        customer_id: str,
        name: str,
        plaid_token: str,
        links: Dict[str, Any],
    ) -> str:
        response = await self._post(
            f"/customers/{customer_id}/funding-sources",
            {"name": name, "plaidToken": plaid_token, "_links": links},
        )
        return self._location(response)

    async def add_funding_source(self, customer_id: str, processor_token: str, bank_name: str) -> str:
        """Authorize, then attach a Plaid-backed funding source to the customer"""
        links = await self.create_on_demand_authorization()
        return await self.create_funding_source(customer_id, bank_name, processor_token, links)

    async def create_transfer(self, source_funding_source_url: str, destination_funding_source_url: str, amount: str) -> str:
        """Move ``amount`` (decimal string, USD) between funding sources; returns the transfer URL"""
        response = await self._post(
            "/transfers",
            {
                "_links": {
                    "source": {"href": source_funding_source_url},
                    "destination": {"href": destination_funding_source_url},
                },
                "amount": {"currency": "USD", "value": amount},
            },
        )
        return self._location(response)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text
