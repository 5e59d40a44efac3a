"""
HTTP client for the token service endpoints.

The underlying httpx.AsyncClient owns the cookie jar, so the httpOnly spotify_refresh
cookie set by /api/exchange is replayed on /api/refresh and /api/logout without this
code ever reading it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import httpx

DEFAULT_TIMEOUT = 20.0


def _json_or_empty(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class TokenServiceClient:
    """Thin async wrapper around /api/exchange, /api/refresh and /api/logout."""

    def __init__(self, service_url: str, http_client: Optional[httpx.AsyncClient] = None):
        self.service_url = service_url.rstrip("/")
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

    def _url(self, path: str) -> str:
        return f"{self.service_url}{path}"

    async def exchange(self, code: str, code_verifier: str, redirect_uri: str) -> Tuple[int, Dict[str, Any]]:
        """POST the code and verifier. Transport errors (httpx.HTTPError) propagate."""
        resp = await self.http.post(
            self._url("/api/exchange"),
            json={"code": code, "code_verifier": code_verifier, "redirect_uri": redirect_uri},
        )
        return resp.status_code, _json_or_empty(resp)

    async def refresh(self) -> Tuple[int, Dict[str, Any]]:
        """POST with no body; the session is identified by the refresh cookie alone."""
        resp = await self.http.post(self._url("/api/refresh"))
        return resp.status_code, _json_or_empty(resp)

    async def logout(self) -> int:
        resp = await self.http.post(self._url("/api/logout"))
        return resp.status_code

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()
