"""Plaid HTTP client for links, accounts, institutions and transactions"""

import httpx
from typing import Any, Dict, List
from horizon.config import settings
from horizon.domain.exceptions import AggregatorError
from horizon.infrastructure.observability.metrics import upstream_failure_counter, upstream_latency_histogram

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

MUTATION_DURING_PAGINATION = "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION"


class PlaidClient:
    """Client for the Plaid API. Credentials travel in the JSON body."""

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id or settings.plaid_client_id
        self.secret = secret or settings.plaid_secret
        env = environment or settings.plaid_env
        if env not in PLAID_ENVIRONMENTS:
            raise ValueError(f"Unknown Plaid environment: {env}")
        self.base_url = PLAID_ENVIRONMENTS[env]
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to a Plaid endpoint.

        Raises:
            AggregatorError: On timeout, Plaid error bodies, or invalid response
        """
        body = {"client_id": self.client_id, "secret": self.secret, **payload}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with upstream_latency_histogram.labels(provider="plaid").time():
                    response = await client.post(f"{self.base_url}/{endpoint}", json=body)

                # Plaid returns errors as 4xx/5xx with a JSON body
                if response.status_code >= 400:
                    upstream_failure_counter.labels(provider="plaid").inc()
                    try:
                        error = response.json()
                    except ValueError:
                        error = {}
                    code = error.get("error_code", "UNKNOWN")
                    message = error.get("error_message", response.text)
                    raise AggregatorError(f"Plaid {endpoint} failed [{code}]: {message}", error_code=code)

                return response.json()

            except httpx.TimeoutException as e:
                upstream_failure_counter.labels(provider="plaid").inc()
                raise AggregatorError(f"Plaid timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                upstream_failure_counter.labels(provider="plaid").inc()
                raise AggregatorError(f"Plaid unreachable: {e}") from e
            except ValueError as e:
                upstream_failure_counter.labels(provider="plaid").inc()
                raise AggregatorError(f"Invalid response from Plaid: {e}") from e

    async def link_token_create(self, client_user_id: str, client_name: str) -> str:
        data = await self._post(
            "link/token/create",
            {
                "user": {"client_user_id": client_user_id},
                "client_name": client_name,
                "products": settings.plaid_products,
                "language": "en",
                "country_codes": settings.plaid_country_codes,
            },
        )
        return _field(data, "link_token")

    async def item_public_token_exchange(self, public_token: str) -> Dict[str, str]:
        """Returns ``{"access_token": ..., "item_id": ...}``"""
        data = await self._post("item/public_token/exchange", {"public_token": public_token})
        return {"access_token": _field(data, "access_token"), "item_id": _field(data, "item_id")}

    async def accounts_get(self, access_token: str) -> Dict[str, Any]:
        """Returns the raw response: ``accounts`` and ``item``"""
        data = await self._post("accounts/get", {"access_token": access_token})
        if not data.get("accounts"):
            raise AggregatorError("Plaid returned no accounts for this item")
        return data

    async def institutions_get_by_id(self, institution_id: str) -> Dict[str, Any]:
        data = await self._post(
            "institutions/get_by_id",
            {
                "institution_id": institution_id,
                "country_codes": settings.plaid_country_codes,
                "options": {"include_optional_metadata": True},
            },
        )
        return _field(data, "institution")

    async def transactions_sync(self, access_token: str, cursor: str = "", count: int = 100) -> Dict[str, Any]:
        """One page of cursor-based sync; an empty cursor starts from the beginning"""
        payload: Dict[str, Any] = {"access_token": access_token, "count": count}
        if cursor:
            payload["cursor"] = cursor

        data = await self._post("transactions/sync", payload)
        if not isinstance(data.get("added"), list):
            raise AggregatorError("Unexpected transactions/sync payload")
        return data

    async def processor_token_create(self, access_token: str, account_id: str, processor: str = "dwolla") -> str:
        data = await self._post(
            "processor/token/create",
            {"access_token": access_token, "account_id": account_id, "processor": processor},
        )
        return _field(data, "processor_token")

    async def item_remove(self, access_token: str) -> None:
        await self._post("item/remove", {"access_token": access_token})


def first_account(accounts_response: Dict[str, Any]) -> Dict[str, Any]:
    accounts: List[Dict[str, Any]] = accounts_response["accounts"]
    return accounts[0]


def _field(data: Dict[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError as e:
        raise AggregatorError(f"Plaid response missing {key!r}") from e
