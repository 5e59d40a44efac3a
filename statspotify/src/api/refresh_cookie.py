"""
The spotify_refresh cookie: the only place the refresh token ever travels.

HttpOnly, SameSite=Lax, Path=/, 30-day Max-Age renewed on every issue, Secure in
production or when the request arrived over TLS. Values are URL-encoded.
"""

from __future__ import annotations

import urllib.parse
from typing import Optional

from fastapi import Request, Response

REFRESH_COOKIE_NAME = "spotify_refresh"
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


def _secure(request: Request, production: bool) -> bool:
    if production:
        return True
    forwarded = (request.headers.get("x-forwarded-proto") or "").lower()
    return request.url.scheme == "https" or forwarded == "https"


# PUBLIC_INTERFACE
def set_refresh_cookie(resp: Response, request: Request, refresh_token: str, production: bool) -> None:
    """Issue (or rotate) the refresh cookie, restarting its 30-day window."""
    resp.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=urllib.parse.quote(refresh_token, safe=""),
        httponly=True,
        secure=_secure(request, production),
        samesite="lax",
        path="/",
        max_age=REFRESH_COOKIE_MAX_AGE,
    )


# PUBLIC_INTERFACE
def clear_refresh_cookie(resp: Response, request: Request, production: bool) -> None:
    """Expire the refresh cookie (Max-Age=0). Safe to repeat."""
    resp.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        httponly=True,
        secure=_secure(request, production),
        samesite="lax",
        path="/",
    )


# PUBLIC_INTERFACE
def read_refresh_cookie(request: Request) -> Optional[str]:
    """Return the decoded refresh token from the request, or None when absent/empty."""
    raw = request.cookies.get(REFRESH_COOKIE_NAME)
    if not raw:
        return None
    return urllib.parse.unquote(raw) or None
