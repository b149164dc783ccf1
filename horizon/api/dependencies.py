"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from typing import Optional
from fastapi import Depends, HTTPException, Request
from horizon.config import settings
from horizon.domain.models import User
from horizon.infrastructure.clients.appwrite import AppwriteClient
from horizon.infrastructure.clients.dwolla import DwollaClient
from horizon.infrastructure.clients.plaid import PlaidClient
from horizon.services.banks import BankService
from horizon.services.transfers import TransferService
from horizon.services.users import UserService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_session_secret(request: Request) -> Optional[str]:
    """Session secret from the Appwrite session cookie"""
    return request.cookies.get(settings.session_cookie_name)


def get_appwrite_client() -> AppwriteClient:
    return AppwriteClient()


def get_plaid_client() -> PlaidClient:
    return PlaidClient()


@lru_cache(maxsize=1)
def get_dwolla_client() -> DwollaClient:
    """One client per process; it holds the cached OAuth token"""
    return DwollaClient()


def get_user_service(
    appwrite: AppwriteClient = Depends(get_appwrite_client),
    plaid: PlaidClient = Depends(get_plaid_client),
    dwolla: DwollaClient = Depends(get_dwolla_client),
) -> UserService:
    return UserService(appwrite, plaid, dwolla)


def get_bank_service(
    appwrite: AppwriteClient = Depends(get_appwrite_client),
    plaid: PlaidClient = Depends(get_plaid_client),
) -> BankService:
    return BankService(appwrite, plaid)


def get_transfer_service(
    appwrite: AppwriteClient = Depends(get_appwrite_client),
    dwolla: DwollaClient = Depends(get_dwolla_client),
) -> TransferService:
    return TransferService(appwrite, dwolla)


async def get_current_user(
    session_secret: Optional[str] = Depends(get_session_secret),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Logged-in user profile; 401 for guests"""
    user = await user_service.get_logged_in_user(session_secret)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
