"""Async client for the hosted backend (table queries, RPC and functions)."""

from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import structlog

from contaflix.config import get_settings

logger = structlog.get_logger(__name__)

Row = dict[str, Any]


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(BackendError):
    """Request was rejected for missing or invalid credentials."""

    pass


class RateLimitError(BackendError):
    """Rate limit exceeded."""

    pass


def _format_filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (list, tuple, set)):
        return "in.(" + ",".join(str(v) for v in value) + ")"
    return f"eq.{value}"


def build_query_params(
    filters: Mapping[str, Any] | None = None,
    columns: Sequence[str] | str | None = None,
    order: str | None = None,
    descending: bool = False,
    limit: int | None = None,
) -> dict[str, str]:
    """Encode filters and modifiers as query-string parameters.

    Equality filters become ``column=eq.value``; None matches NULL and a
    sequence matches any of its values.
    """
    params: dict[str, str] = {}
    if columns is not None:
        params["select"] = columns if isinstance(columns, str) else ",".join(columns)
    for column, value in (filters or {}).items():
        params[column] = _format_filter_value(value)
    if order:
        params["order"] = f"{order}.{'desc' if descending else 'asc'}"
    if limit is not None:
        params["limit"] = str(max(limit, 0))
    return params


class FunctionsClient:
    """Invokes serverless functions through the parent client."""

    def __init__(self, client: "BackendClient"):
        self._client = client

    async def invoke(self, name: str, payload: Mapping[str, Any] | None = None) -> Any:
        """Call a serverless function by name and return its JSON body."""
        return await self._client._request(
            "POST", f"/functions/v1/{name}", json=dict(payload or {})
        )


class BackendClient:
    """Async client for the hosted Backend-as-a-Service.

    Exposes ``select/insert/update/delete`` on named tables, ``rpc`` for
    server-side procedures and ``functions.invoke`` for serverless
    functions. Failed requests raise once; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.backend_anon_key.get_secret_value()
        self._access_token = access_token
        self._timeout = timeout or settings.backend_timeout
        self._client: httpx.AsyncClient | None = None
        self.functions = FunctionsClient(self)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Session ===

    def set_session(self, access_token: str | None) -> None:
        """Use a signed-in user's token instead of the anonymous key."""
        self._access_token = access_token

    @property
    def has_session(self) -> bool:
        return self._access_token is not None

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        bearer = self._access_token or self._api_key
        headers = {"Content-Type": "application/json", "apikey": self._api_key}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    # === Generic request ===

    async def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=dict(params) if params else None,
                json=json,
                headers=self._get_headers(prefer),
            )
        except httpx.RequestError as e:
            logger.warning("backend_request_failed", method=method, path=path, error=str(e))
            raise BackendError(f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Not authorized", status_code=response.status_code, details=self._error_details(response)
            )

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise RateLimitError(
                f"Rate limited, retry after {retry_after}s",
                status_code=429,
                details={"retry_after": retry_after},
            )

        if response.status_code >= 400:
            raise BackendError(
                f"Backend error: {response.status_code}",
                status_code=response.status_code,
                details=self._error_details(response),
            )

        logger.debug("backend_request", method=method, path=path, status=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("backend_invalid_json", method=method, path=path, error=str(e))
            raise BackendError(
                "Invalid JSON response",
                status_code=response.status_code,
                details={"raw": response.text[:500] if response.text else ""},
            ) from e

    @staticmethod
    def _error_details(response: httpx.Response) -> Any:
        try:
            return response.json() if response.content else {}
        except ValueError:
            return {"raw": response.text[:500] if response.text else "empty response"}

    @staticmethod
    def _as_rows(result: Any) -> list[Row]:
        if isinstance(result, list):
            return [r for r in result if isinstance(r, dict)]
        if isinstance(result, dict):
            return [result]
        return []

    # === Tables ===

    async def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: Sequence[str] | str = "*",
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Fetch rows from a table matching every equality filter."""
        params = build_query_params(filters, columns, order, descending, limit)
        result = await self._request("GET", f"/rest/v1/{table}", params=params)
        return self._as_rows(result)

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        """Insert one or more rows and return them as stored."""
        payload = [rows] if isinstance(rows, dict) else list(rows)
        result = await self._request(
            "POST", f"/rest/v1/{table}", json=payload, prefer="return=representation"
        )
        return self._as_rows(result)

    async def update(
        self, table: str, values: Row, filters: Mapping[str, Any]
    ) -> list[Row]:
        """Update rows matching ``filters``. Filters are required."""
        if not filters:
            raise ValueError("update requires at least one filter")
        result = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=build_query_params(filters),
            json=values,
            prefer="return=representation",
        )
        return self._as_rows(result)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> list[Row]:
        """Delete rows matching ``filters``. Filters are required."""
        if not filters:
            raise ValueError("delete requires at least one filter")
        result = await self._request(
            "DELETE",
            f"/rest/v1/{table}",
            params=build_query_params(filters),
            prefer="return=representation",
        )
        return self._as_rows(result)

    # === Procedures ===

    async def rpc(self, name: str, args: Mapping[str, Any] | None = None) -> Any:
        """Call a named server-side procedure."""
        return await self._request("POST", f"/rest/v1/rpc/{name}", json=dict(args or {}))
