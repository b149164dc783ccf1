"""Integration tests for API endpoints"""

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from horizon.config import settings
from horizon.domain.exceptions import (
    AggregatorError,
    AuthProviderError,
    ForbiddenError,
    NotAuthenticatedError,
    NotFoundError,
    SignUpError,
    TransferError,
    UnrecordedTransferError,
)
from horizon.domain.models import AccountsSummary, Bank, TransferRecord
from tests.factories import SESSION_SECRET

SIGN_UP_BODY = {
    "email": "ada@example.com",
    "password": "password123",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address1": "1 Main St",
    "city": "Springfield",
    "state": "ny",
    "postal_code": "10001",
    "date_of_birth": "1990-01-01",
    "ssn": "1234",
}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


def test_sign_up_sets_session_cookie(client: TestClient, user_service: MagicMock):
    response = client.post("/v1/auth/sign-up", json=SIGN_UP_BODY)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["user"]["first_name"] == "Ada"
    assert "ssn" not in data["user"]

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.session_cookie_name}={SESSION_SECRET}")
    assert "HttpOnly" in cookie
    assert "SameSite=strict" in cookie or "samesite=strict" in cookie.lower()

    new_user, password = user_service.sign_up.await_args.args
    assert new_user.state == "NY"
    assert new_user.date_of_birth == "1990-01-01"
    assert password == "password123"


def test_sign_up_validation(client: TestClient, user_service: MagicMock):
    body = {**SIGN_UP_BODY, "ssn": "12345", "password": "short"}

    response = client.post("/v1/auth/sign-up", json=body)

    assert response.status_code == 422
    user_service.sign_up.assert_not_awaited()


def test_sign_up_failure(client: TestClient, user_service: MagicMock):
    user_service.sign_up.side_effect = SignUpError("Failed to create user account: Dwolla rejected")

    response = client.post("/v1/auth/sign-up", json=SIGN_UP_BODY)

    assert response.status_code == 502
    assert "Failed to create user account" in response.json()["detail"]
    assert "set-cookie" not in response.headers


def test_sign_in_sets_cookie(client: TestClient):
    response = client.post("/v1/auth/sign-in", json={"email": "ada@example.com", "password": "password123"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "user": None}
    assert client.cookies.get(settings.session_cookie_name) == SESSION_SECRET


def test_sign_in_bad_credentials(client: TestClient, user_service: MagicMock):
    user_service.sign_in.side_effect = NotAuthenticatedError("Invalid credentials")

    response = client.post("/v1/auth/sign-in", json={"email": "ada@example.com", "password": "password123"})

    assert response.status_code == 401


def test_sign_in_provider_down(client: TestClient, user_service: MagicMock):
    user_service.sign_in.side_effect = AuthProviderError("Appwrite timeout after 10.0s")

    response = client.post("/v1/auth/sign-in", json={"email": "ada@example.com", "password": "password123"})

    assert response.status_code == 503


def test_me_requires_session(client: TestClient):
    assert client.get("/v1/auth/me").status_code == 401


def test_me_with_session(auth_client: TestClient):
    response = auth_client.get("/v1/auth/me")

    assert response.status_code == 200
    assert response.json()["email"] == "ada@example.com"


def test_logout_clears_cookie(auth_client: TestClient, user_service: MagicMock):
    response = auth_client.post("/v1/auth/logout")

    assert response.status_code == 200
    user_service.logout.assert_awaited_once_with(SESSION_SECRET)
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.session_cookie_name}=")
    assert "Max-Age=0" in cookie


def test_link_token(auth_client: TestClient):
    response = auth_client.post("/v1/banks/link-token")

    assert response.status_code == 200
    assert response.json()["link_token"] == "link-sandbox-token"


def test_exchange_public_token(auth_client: TestClient, user_service: MagicMock, bank: Bank):
    response = auth_client.post("/v1/banks/exchange", json={"public_token": "public-sandbox-1"})

    assert response.status_code == 201
    assert response.json() == {
        "public_token_exchange": "complete",
        "bank_id": bank.id,
        "shareable_id": bank.shareable_id,
    }


def test_exchange_public_token_plaid_down(auth_client: TestClient, user_service: MagicMock):
    user_service.exchange_public_token.side_effect = AggregatorError("Plaid unreachable")

    response = auth_client.post("/v1/banks/exchange", json={"public_token": "public-sandbox-1"})

    assert response.status_code == 503


def test_list_accounts(auth_client: TestClient, bank_service: MagicMock, user):
    response = auth_client.get("/v1/accounts")

    assert response.status_code == 200
    data = response.json()
    assert data["total_banks"] == 1
    assert data["total_current_balance"] == 110.0
    assert data["data"][0]["mask"] == "0000"
    bank_service.get_accounts.assert_awaited_once_with(user.id)


def test_get_account_detail(auth_client: TestClient, bank: Bank):
    response = auth_client.get(f"/v1/accounts/{bank.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["data"]["appwrite_item_id"] == bank.id
    assert len(data["transactions"]) == 12


def test_get_account_of_other_user(auth_client: TestClient, user_service: MagicMock, receiver_bank: Bank):
    user_service.get_bank.return_value = receiver_bank

    response = auth_client.get(f"/v1/accounts/{receiver_bank.id}")

    assert response.status_code == 404


def test_get_account_missing(auth_client: TestClient, user_service: MagicMock):
    user_service.get_bank.side_effect = NotFoundError("Document not found")

    assert auth_client.get("/v1/accounts/missing").status_code == 404


def test_home_page(auth_client: TestClient, bank_service: MagicMock, bank: Bank):
    response = auth_client.get("/v1/home")

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["first_name"] == "Ada"
    assert data["appwrite_item_id"] == bank.id
    assert data["accounts"]["total_banks"] == 1
    assert data["transactions"]["page"] == 1
    assert data["transactions"]["total_pages"] == 2
    assert len(data["transactions"]["items"]) == 10
    assert data["categories"][0]["total_count"] == 12
    assert len(data["banks"]) == 1
    bank_service.get_account.assert_awaited_once_with(bank.id)


def test_home_page_second_page(auth_client: TestClient):
    data = auth_client.get("/v1/home", params={"page": "2"}).json()

    assert data["transactions"]["page"] == 2
    assert [t["id"] for t in data["transactions"]["items"]] == ["tx_10", "tx_11"]


def test_home_page_invalid_page_falls_back(auth_client: TestClient):
    data = auth_client.get("/v1/home", params={"page": "abc"}).json()
    assert data["transactions"]["page"] == 1


def test_home_page_without_banks(auth_client: TestClient, bank_service: MagicMock):
    bank_service.get_accounts.return_value = AccountsSummary(data=[], total_banks=0, total_current_balance=0.0)

    response = auth_client.get("/v1/home")

    assert response.status_code == 200
    data = response.json()
    assert data["appwrite_item_id"] is None
    assert data["account"] is None
    assert data["transactions"]["items"] == []
    bank_service.get_account.assert_not_awaited()


def test_home_page_requires_session(client: TestClient):
    assert client.get("/v1/home").status_code == 401


def test_transaction_history(auth_client: TestClient, user_service: MagicMock, bank: Bank):
    response = auth_client.get("/v1/transaction-history", params={"id": bank.id})

    assert response.status_code == 200
    data = response.json()
    assert data["account"]["official_name"] == "Plaid Gold Standard 0% Interest Checking"
    assert data["formatted_current_balance"] == "$110.00"
    assert data["transactions"]["total_items"] == 12
    user_service.get_bank.assert_awaited_once_with(bank.id)


def test_create_transfer(auth_client: TestClient, transfer_service: MagicMock, bank: Bank, receiver_bank: Bank):
    transfer_service.create_transfer.return_value = TransferRecord(
        id="tr_1",
        name="Dinner",
        amount=25.5,
        sender_id=bank.user_id,
        sender_bank_id=bank.id,
        receiver_id=receiver_bank.user_id,
        receiver_bank_id=receiver_bank.id,
        email="friend@example.com",
        created_at=datetime(2024, 3, 5, tzinfo=timezone.utc),
    )

    response = auth_client.post(
        "/v1/transfers",
        json={
            "sender_bank_id": bank.id,
            "shareable_id": receiver_bank.shareable_id,
            "amount": "25.50",
            "name": "Dinner",
            "email": "friend@example.com",
        },
    )

    assert response.status_code == 201
    assert response.json()["id"] == "tr_1"
    assert transfer_service.create_transfer.await_args.kwargs["shareable_id"] == receiver_bank.shareable_id


def test_create_transfer_rejects_negative_amount(auth_client: TestClient, transfer_service: MagicMock, bank: Bank, receiver_bank: Bank):
    response = auth_client.post(
        "/v1/transfers",
        json={
            "sender_bank_id": bank.id,
            "shareable_id": receiver_bank.shareable_id,
            "amount": "-5",
            "email": "friend@example.com",
        },
    )

    assert response.status_code == 422
    transfer_service.create_transfer.assert_not_awaited()


def test_create_transfer_failure(auth_client: TestClient, transfer_service: MagicMock, bank: Bank, receiver_bank: Bank):
    transfer_service.create_transfer.side_effect = TransferError("Transfer failed: insufficient funds")

    response = auth_client.post(
        "/v1/transfers",
        json={
            "sender_bank_id": bank.id,
            "shareable_id": receiver_bank.shareable_id,
            "amount": "10",
            "email": "friend@example.com",
        },
    )

    assert response.status_code == 502


def test_create_transfer_from_foreign_bank(auth_client: TestClient, transfer_service: MagicMock, receiver_bank: Bank):
    transfer_service.create_transfer.side_effect = ForbiddenError("Sender bank does not belong to the user")

    response = auth_client.post(
        "/v1/transfers",
        json={
            "sender_bank_id": receiver_bank.id,
            "shareable_id": receiver_bank.shareable_id,
            "amount": "10",
            "email": "friend@example.com",
        },
    )

    assert response.status_code == 403


def test_create_transfer_sent_but_not_recorded(auth_client: TestClient, transfer_service: MagicMock, bank: Bank, receiver_bank: Bank):
    transfer_service.create_transfer.side_effect = UnrecordedTransferError(
        "Transfer https://api-sandbox.dwolla.com/transfers/t1 was sent but could not be recorded; do not retry",
        transfer_url="https://api-sandbox.dwolla.com/transfers/t1",
    )

    response = auth_client.post(
        "/v1/transfers",
        json={
            "sender_bank_id": bank.id,
            "shareable_id": receiver_bank.shareable_id,
            "amount": "10",
            "email": "friend@example.com",
        },
    )

    assert response.status_code == 502
    assert "do not retry" in response.json()["detail"]
    assert "transfers/t1" in response.json()["detail"]


def test_create_transfer_logs_on_router_logger(auth_client: TestClient, transfer_service: MagicMock, bank: Bank, receiver_bank: Bank, caplog):
    transfer_service.create_transfer.return_value = TransferRecord(
        id="tr_2",
        name="",
        amount=10.0,
        sender_id=bank.user_id,
        sender_bank_id=bank.id,
        receiver_id=receiver_bank.user_id,
        receiver_bank_id=receiver_bank.id,
        email="friend@example.com",
        created_at=datetime(2024, 3, 5, tzinfo=timezone.utc),
    )

    with caplog.at_level(logging.INFO, logger="horizon.api.v1.transfers"):
        response = auth_client.post(
            "/v1/transfers",
            json={
                "sender_bank_id": bank.id,
                "shareable_id": receiver_bank.shareable_id,
                "amount": "10",
                "email": "friend@example.com",
            },
        )

    assert response.status_code == 201
    records = [r for r in caplog.records if r.getMessage() == "Transfer recorded"]
    assert [r.name for r in records] == ["horizon.api.v1.transfers"]
    assert records[0].transfer_id == "tr_2"
