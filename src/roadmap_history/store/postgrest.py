"""Minimal async client for the hosted backend's PostgREST table API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Error fragments that mean "table not provisioned yet" or "bad credentials".
_UNPROVISIONED_MARKERS = (
    "does not exist",
    "could not find the table",
    "credentials not found",
    "jwt",
    "auth",
    "connection",
)


class PostgrestError(Exception):
    """A failed request against the table API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def unprovisioned(self) -> bool:
        """True when the error means the table or credentials are not set up."""
        if self.status_code in (401, 403):
            return True
        lowered = self.message.lower()
        return any(marker in lowered for marker in _UNPROVISIONED_MARKERS)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class PostgrestClient:
    """Sends table requests to ``{url}/rest/v1/<table>`` with API-key auth."""

    def __init__(
        self,
        url: str,
        key: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1/",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        single: bool = False,
        returning: bool = False,
    ) -> Any:
        """Run one request and return the decoded JSON body (or ``None``).

        ``single`` asks for exactly one row as an object; ``returning`` asks
        writes to echo the affected rows.  Raises ``PostgrestError``.
        """
        headers: dict[str, str] = {}
        if single:
            headers["Accept"] = "application/vnd.pgrst.object+json"
        if returning:
            headers["Prefer"] = "return=representation"

        try:
            response = await self._http.request(
                method, table, params=params, json=json, headers=headers,
            )
        except httpx.HTTPError as exc:
            raise PostgrestError(f"connection error: {exc}") from exc

        if response.status_code >= 400:
            raise PostgrestError(_error_message(response), status_code=response.status_code)

        logger.debug("%s %s -> HTTP %d", method, table, response.status_code)
        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()
