"""Admin API table gateway over HTTP."""
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from deltamatrix.config.settings import get_settings
from deltamatrix.core.exceptions import PersistenceError
from deltamatrix.core.logging import get_logger
from deltamatrix.repositories.base import TableGateway

logger = get_logger(__name__)


class HttpTableGateway(TableGateway):
    """
    Table gateway backed by the admin REST API.

    Endpoints used:
        GET  /tables/{key}
        PUT  /tables/{key}/rows/{id}
        POST /matrix-configs/sync-deltas/{motion_id}
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.admin_api_base_url).rstrip('/')
        self.timeout = timeout or settings.admin_api_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("admin_api_error", method=method, path=path, status=e.response.status_code)
            raise PersistenceError(
                f"Admin API returned {e.response.status_code} for {method} {path}",
                details={"status": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            logger.error("admin_api_unreachable", method=method, path=path, error=str(e))
            raise PersistenceError(f"Admin API request failed: {e}", details={"path": path}) from e
        return response

    async def fetch_table(self, name: str) -> list[dict[str, Any]]:
        response = await self._request("GET", f"/tables/{quote(name, safe='')}")
        try:
            data = response.json()
        except ValueError as e:
            logger.error("admin_api_bad_body", table=name, error=str(e))
            raise PersistenceError(f"Table {name} did not return JSON", details={"table": name}) from e
        if not isinstance(data, list):
            raise PersistenceError(f"Table {name} did not return a list", details={"table": name})
        return [row for row in data if isinstance(row, dict)]

    async def update_row(self, name: str, row_id: str, fields: dict[str, Any]) -> None:
        await self._request(
            "PUT",
            f"/tables/{quote(name, safe='')}/rows/{quote(row_id, safe='')}",
            json=fields,
        )

    async def sync_derived_config(self, motion_id: str) -> None:
        await self._request("POST", f"/matrix-configs/sync-deltas/{quote(motion_id, safe='')}")
