"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from horizon.api.main import create_app
from horizon.api.dependencies import get_bank_service, get_transfer_service, get_user_service
from horizon.config import settings
from horizon.domain.models import Account, AccountDetail, AccountsSummary, Bank, Transaction, User
from horizon.utils.ids import encrypt_id
from tests.factories import SESSION_SECRET


@pytest.fixture
def user() -> User:
    return User(
        id="user_doc_1",
        user_id="appwrite_user_1",
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
        dwolla_customer_id="cust-123",
        dwolla_customer_url="https://api-sandbox.dwolla.com/customers/cust-123",
        address1="1 Main St",
        city="Springfield",
        state="NY",
        postal_code="10001",
        date_of_birth="1990-01-01",
        ssn="1234",
    )


@pytest.fixture
def bank(user: User) -> Bank:
    return Bank(
        id="bank_doc_1",
        user_id=user.id,
        bank_id="item-1",
        account_id="acc-1",
        access_token="access-sandbox-1",
        funding_source_url="https://api-sandbox.dwolla.com/funding-sources/fs-1",
        shareable_id=encrypt_id("acc-1"),
    )


@pytest.fixture
def receiver_bank() -> Bank:
    return Bank(
        id="bank_doc_2",
        user_id="user_doc_2",
        bank_id="item-2",
        account_id="acc-2",
        access_token="access-sandbox-2",
        funding_source_url="https://api-sandbox.dwolla.com/funding-sources/fs-2",
        shareable_id=encrypt_id("acc-2"),
    )


@pytest.fixture
def account(bank: Bank) -> Account:
    return Account(
        id="acc-1",
        available_balance=100.0,
        current_balance=110.0,
        institution_id="ins_109508",
        name="Plaid Checking",
        official_name="Plaid Gold Standard 0% Interest Checking",
        mask="0000",
        type="depository",
        subtype="checking",
        appwrite_item_id=bank.id,
        shareable_id=bank.shareable_id,
    )


@pytest.fixture
def transactions() -> list[Transaction]:
    """Twelve transactions, newest first, alternating categories"""
    return [
        Transaction(
            id=f"tx_{i}",
            name=f"Purchase {i}",
            amount=10.0 + i,
            date=datetime(2024, 3, 30 - i, tzinfo=timezone.utc),
            category="Food and Drink" if i % 2 == 0 else "Travel",
            type="debit",
            payment_channel="online",
        )
        for i in range(12)
    ]


@pytest.fixture
def user_service(user: User, bank: Bank) -> MagicMock:
    service = MagicMock()
    service.get_logged_in_user = AsyncMock(side_effect=lambda secret: user if secret == SESSION_SECRET else None)
    service.get_bank = AsyncMock(return_value=bank)
    service.sign_in = AsyncMock(return_value=SESSION_SECRET)
    service.sign_up = AsyncMock(return_value=(user, SESSION_SECRET))
    service.logout = AsyncMock(return_value=None)
    service.create_link_token = AsyncMock(return_value="link-sandbox-token")
    service.exchange_public_token = AsyncMock(return_value=bank)
    return service


@pytest.fixture
def bank_service(account: Account, transactions: list[Transaction]) -> MagicMock:
    service = MagicMock()
    service.get_accounts = AsyncMock(
        return_value=AccountsSummary(data=[account], total_banks=1, total_current_balance=110.0)
    )
    service.get_account = AsyncMock(return_value=AccountDetail(data=account, transactions=transactions))
    return service


@pytest.fixture
def transfer_service() -> MagicMock:
    service = MagicMock()
    service.create_transfer = AsyncMock()
    return service


@pytest.fixture
def client(user_service: MagicMock, bank_service: MagicMock, transfer_service: MagicMock) -> TestClient:
    """Create FastAPI test client with provider-facing services replaced"""
    app = create_app()
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_bank_service] = lambda: bank_service
    app.dependency_overrides[get_transfer_service] = lambda: transfer_service
    return TestClient(app)


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """Test client carrying a valid session cookie"""
    client.cookies.set(settings.session_cookie_name, SESSION_SECRET)
    return client
