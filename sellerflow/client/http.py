"""Async HTTP collaborator for the marketplace backend.

Thin wrapper over ``httpx.AsyncClient`` that maps transport and status
failures onto the sellerflow error taxonomy. Every call carries the
configured timeout. Nothing is retried here: the caller decides whether
to offer the user a retry.
"""

import logging
from typing import Any

import httpx

from sellerflow.errors import (
    NetworkError,
    NotFound,
    RemoteError,
    RequestTimeout,
    Unauthorized,
)

logger = logging.getLogger(__name__)

_DETAIL_MAX_CHARS = 200


class MarketplaceClient:
    """JSON-over-HTTP client with bearer auth.

    Use as an async context manager, or call ``aclose()`` when done.
    A transport can be injected for tests (``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            headers=headers,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    async def get(self, path: str) -> Any:
        return await self._request("GET", path)

    async def post(self, path: str, json_data: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, json_data=json_data)

    async def put(self, path: str, json_data: dict[str, Any] | None = None) -> Any:
        return await self._request("PUT", path, json_data=json_data)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        path = path.lstrip("/")
        try:
            resp = await self._client.request(method, path, json=json_data)
        except httpx.TimeoutException as exc:
            logger.warning("Request timed out: %s %s", method, path)
            msg = f"{method} {path} timed out"
            raise RequestTimeout(msg) from exc
        except httpx.TransportError as exc:
            logger.warning("Transport failure: %s %s (%s)", method, path, exc)
            msg = f"{method} {path} failed: {exc}"
            raise NetworkError(msg) from exc

        if resp.status_code == 404:
            raise NotFound(path)
        if resp.status_code in (401, 403):
            msg = f"{method} {path} rejected with {resp.status_code}"
            raise Unauthorized(msg)
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.error("Backend error %d on %s %s: %s", resp.status_code, method, path, detail)
            raise RemoteError(resp.status_code, detail)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            msg = f"{method} {path} returned a non-JSON body"
            raise RemoteError(resp.status_code, msg) from exc


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort human message from an error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:_DETAIL_MAX_CHARS]
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value[:_DETAIL_MAX_CHARS]
    return str(body)[:_DETAIL_MAX_CHARS]
