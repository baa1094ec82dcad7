"""REST client for the hosted structured data store (PostgREST dialect).

Requests carry the project API key and, when present, the caller's access
token so the store's row-level security decides what the caller may see.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.core.config import get_settings
from app.core.logging import get_logger
from app.services.providers.http_client import CircuitBreaker, send

NO_ROWS_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"

logger = get_logger()
_cb = CircuitBreaker()


class DataStoreError(Exception):
    def __init__(self, message: str, status_code: int = 502, code: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


class RecordNotFound(DataStoreError):
    def __init__(self, message: str = "No rows returned", details: Any = None) -> None:
        super().__init__(message, status_code=406, code=NO_ROWS_CODE, details=details)


class DataStoreConflict(DataStoreError):
    def __init__(self, message: str = "Record already exists", details: Any = None) -> None:
        super().__init__(message, status_code=409, code=UNIQUE_VIOLATION_CODE, details=details)


class DataStoreUnavailable(DataStoreError):
    def __init__(self, message: str = "Data store unavailable") -> None:
        super().__init__(message, status_code=503, code="unavailable")


def filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class DataStoreClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.data_store_url).rstrip("/")
        self.api_key = api_key or settings.data_store_key
        self.access_token = access_token
        self.breaker = breaker or _cb
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            timeout=timeout or settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "DataStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        single: bool = False,
    ) -> Any:
        params: dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = filter_value(value)
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        extra = {"Accept": "application/vnd.pgrst.object+json"} if single else None
        return await self._request("GET", f"/{table}", params=params, headers=extra, retry=True)

    async def insert(self, table: str, row: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request(
            "POST", f"/{table}", json=row, headers={"Prefer": "return=representation"}
        )

    async def upsert(self, table: str, row: dict[str, Any], on_conflict: str) -> list[dict[str, Any]]:
        return await self._request(
            "POST",
            f"/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )

    async def update(self, table: str, values: dict[str, Any], filters: dict[str, Any]) -> list[dict[str, Any]]:
        params = {column: filter_value(value) for column, value in filters.items()}
        return await self._request(
            "PATCH", f"/{table}", params=params, json=values, headers={"Prefer": "return=representation"}
        )

    async def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        params = {column: filter_value(value) for column, value in filters.items()}
        return await self._request("DELETE", f"/{table}", params=params, headers={"Prefer": "return=representation"})

    async def rpc(self, function: str, params: dict[str, Any] | None = None, read_only: bool = True) -> Any:
        return await self._request("POST", f"/rpc/{function}", json=params or {}, retry=read_only)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        retry: bool = False,
    ) -> Any:
        if not self.breaker.allow():
            raise DataStoreUnavailable()
        try:
            response = await send(
                self._client,
                method,
                path,
                retry=retry,
                headers=self._headers(headers),
                params=params,
                json=json,
            )
        except httpx.TransportError as exc:
            self.breaker.record_failure()
            logger.error("data_store_transport_error", method=method, path=path, error=str(exc))
            raise DataStoreUnavailable(f"Data store request failed: {exc}") from exc

        self.breaker.record_success()
        if response.is_error:
            raise self._error_from(response, method, path)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _error_from(self, response: httpx.Response, method: str, path: str) -> DataStoreError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = body.get("code")
        message = body.get("message") or response.text or f"HTTP {response.status_code}"
        if code == NO_ROWS_CODE:
            return RecordNotFound(message, details=body.get("details"))
        if code == UNIQUE_VIOLATION_CODE:
            return DataStoreConflict(message, details=body.get("details"))
        logger.error(
            "data_store_error",
            method=method,
            path=path,
            status_code=response.status_code,
            code=code,
            message=message,
        )
        return DataStoreError(message, status_code=response.status_code, code=code, details=body.get("details"))
