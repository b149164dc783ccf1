"""Appwrite REST client for accounts, sessions and documents"""

import json
import httpx
from typing import Any, Dict, List, Optional
from horizon.config import settings
from horizon.domain.exceptions import AuthProviderError, NotAuthenticatedError, NotFoundError
from horizon.infrastructure.observability.metrics import upstream_failure_counter, upstream_latency_histogram

UNIQUE_ID = "unique()"


class Query:
    """Appwrite query strings (JSON form, Appwrite 1.5+)"""

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return json.dumps({"method": "equal", "attribute": attribute, "values": values})

    @staticmethod
    def order_desc(attribute: str) -> str:
        return json.dumps({"method": "orderDesc", "attribute": attribute})

    @staticmethod
    def limit(count: int) -> str:
        return json.dumps({"method": "limit", "values": [count]})

    @staticmethod
    def cursor_after(document_id: str) -> str:
        return json.dumps({"method": "cursorAfter", "values": [document_id]})


class AppwriteClient:
    """
    Client for the Appwrite server API.

    Admin calls authenticate with the project API key. Calls made on behalf of
    a signed-in user send the session secret instead.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        project: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = (endpoint or settings.appwrite_endpoint).rstrip("/")
        self.project = project or settings.appwrite_project
        self.api_key = api_key or settings.appwrite_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _headers(self, session_secret: str | None = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Appwrite-Project": self.project,
            "X-Appwrite-Response-Format": "1.5.0",
        }
        if session_secret is not None:
            headers["X-Appwrite-Session"] = session_secret
        else:
            headers["X-Appwrite-Key"] = self.api_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Any] = None,
        session_secret: str | None = None,
    ) -> Dict[str, Any]:
        """
        Send one request and decode the JSON body.

        Raises:
            NotAuthenticatedError: On 401 (missing, expired or guest session)
            NotFoundError: On 404
            AuthProviderError: On timeout, other HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with upstream_latency_histogram.labels(provider="appwrite").time():
                    response = await client.request(
                        method,
                        f"{self.endpoint}{path}",
                        json=json_body,
                        params=params,
                        headers=self._headers(session_secret),
                    )

                if response.status_code == 401:
                    raise NotAuthenticatedError(_error_message(response))
                if response.status_code == 404:
                    raise NotFoundError(_error_message(response))
                response.raise_for_status()

                if response.status_code == 204 or not response.content:
                    return {}
                return response.json()

            except httpx.TimeoutException as e:
                upstream_failure_counter.labels(provider="appwrite").inc()
                raise AuthProviderError(f"Appwrite timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                upstream_failure_counter.labels(provider="appwrite").inc()
                raise AuthProviderError(
                    f"Appwrite error {e.response.status_code}: {_error_message(e.response)}"
                ) from e
            except httpx.RequestError as e:
                upstream_failure_counter.labels(provider="appwrite").inc()
                raise AuthProviderError(f"Appwrite unreachable: {e}") from e
            except ValueError as e:
                upstream_failure_counter.labels(provider="appwrite").inc()
                raise AuthProviderError(f"Invalid response from Appwrite: {e}") from e

    # Accounts and sessions

    async def create_account(self, email: str, password: str, name: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/account",
            json_body={"userId": UNIQUE_ID, "email": email, "password": password, "name": name},
        )

    async def create_email_password_session(self, email: str, password: str) -> Dict[str, Any]:
        """Create a session; with an API key the response includes ``secret``"""
        session = await self._request(
            "POST",
            "/account/sessions/email",
            json_body={"email": email, "password": password},
        )
        if not session.get("secret"):
            raise AuthProviderError("Appwrite session has no secret; is the API key set?")
        return session

    async def get_account(self, session_secret: str) -> Dict[str, Any]:
        return await self._request("GET", "/account", session_secret=session_secret)

    async def delete_session(self, session_secret: str, session_id: str = "current") -> None:
        await self._request("DELETE", f"/account/sessions/{session_id}", session_secret=session_secret)

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/users/{user_id}")

    # Documents

    def _collection_path(self, database_id: str, collection_id: str) -> str:
        return f"/databases/{database_id}/collections/{collection_id}/documents"

    async def create_document(
        self,
        database_id: str,
        collection_id: str,
        data: Dict[str, Any],
        document_id: str = UNIQUE_ID,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            self._collection_path(database_id, collection_id),
            json_body={"documentId": document_id, "data": data},
        )

    async def get_document(self, database_id: str, collection_id: str, document_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{self._collection_path(database_id, collection_id)}/{document_id}")

    async def delete_document(self, database_id: str, collection_id: str, document_id: str) -> None:
        await self._request("DELETE", f"{self._collection_path(database_id, collection_id)}/{document_id}")

    async def list_documents(
        self,
        database_id: str,
        collection_id: str,
        queries: List[str] | None = None,
    ) -> Dict[str, Any]:
        """Returns ``{"total": int, "documents": [...]}``"""
        params = [("queries[]", q) for q in queries or []]
        return await self._request("GET", self._collection_path(database_id, collection_id), params=params)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text
