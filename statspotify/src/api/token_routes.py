"""
FastAPI routes for the Spotify Authorization Code + PKCE token service.

Provides:
- POST /api/exchange -> exchanges {code, code_verifier, redirect_uri} for tokens; refresh token goes into a cookie
- GET|POST /api/refresh -> mints a new access token from the refresh cookie, rotating it when Spotify issues a new one
- POST /api/logout -> clears the refresh cookie

Security:
- The client secret and refresh token never appear in a response body or log line
- Stateless: the refresh token lives only in the httpOnly 'spotify_refresh' cookie
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from . import spotify_accounts
from .errors import (
    ErrorCode,
    misconfigured,
    missing_params,
    missing_refresh,
    transport_failure,
    upstream_failure,
)
from .observability import log_event
from .refresh_cookie import clear_refresh_cookie, read_refresh_cookie, set_refresh_cookie
from .schemas import ErrorBody, ExchangeRequest, LogoutResponse, SafeTokenResponse
from .settings import get_spotify_oauth_config, has_client_credentials, is_production

router = APIRouter()

_error_responses = {
    400: {"model": ErrorBody, "description": "Missing code or code_verifier"},
    401: {"model": ErrorBody, "description": "No refresh cookie present"},
    405: {"model": ErrorBody, "description": "Method not allowed"},
    500: {"description": "Server misconfigured, transport failure, or forwarded authorization server error"},
}


async def _read_json_body(request: Request) -> Any:
    """Decode the JSON body; a missing or malformed body is treated as empty."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return await request.json()
    except ValueError:
        return {}


def _load_credentials(request: Request, event: str) -> dict:
    cfg = get_spotify_oauth_config()
    if not has_client_credentials(cfg):
        log_event(
            logging.ERROR,
            event,
            request,
            status_code=500,
            has_client=bool(cfg.get("client_id")),
            has_secret=bool(cfg.get("client_secret")),
        )
        raise misconfigured()
    return cfg


def _safe_token_response(request: Request, cfg: dict, token_json: Dict[str, Any]) -> JSONResponse:
    """Return the safe token subset; move any refresh token into the cookie."""
    resp = JSONResponse(SafeTokenResponse.from_token_json(token_json).to_body())
    refresh_token = token_json.get("refresh_token")
    if refresh_token:
        set_refresh_cookie(resp, request, refresh_token, cfg.get("production", is_production()))
    return resp


# PUBLIC_INTERFACE
@router.post(
    "/api/exchange",
    tags=["Auth"],
    summary="Exchange authorization code for an access token",
    description="Exchanges a PKCE authorization code using server-held client credentials. "
                "Returns only non-sensitive token fields; the refresh token is set as an httpOnly cookie.",
    response_model=SafeTokenResponse,
    response_model_exclude_none=True,
    responses=_error_responses,
)
async def exchange(request: Request):
    """
    Complete the Authorization Code + PKCE exchange.

    Body (JSON):
        code: authorization code from the redirect
        code_verifier: PKCE verifier matching the challenge sent to /authorize
        redirect_uri: redirect URI used in the authorization request

    Returns:
        200 {access_token, token_type, expires_in, scope} + Set-Cookie spotify_refresh
    """
    body = ExchangeRequest.from_payload(await _read_json_body(request))
    if not body.code or not body.code_verifier:
        log_event(logging.INFO, "exchange_rejected", request, status_code=400,
                  has_code=bool(body.code), has_verifier=bool(body.code_verifier))
        raise missing_params()

    cfg = _load_credentials(request, "exchange_misconfigured")

    form = {
        "grant_type": "authorization_code",
        "code": body.code,
        "redirect_uri": body.redirect_uri or "",
        "code_verifier": body.code_verifier,
    }
    try:
        status_code, token_json = await spotify_accounts.post_token_form(cfg, form)
    except httpx.HTTPError as exc:
        log_event(logging.ERROR, "exchange_transport_error", request, status_code=500, error=type(exc).__name__)
        raise transport_failure(ErrorCode.EXCHANGE_FAILED, exc)

    if status_code != 200:
        log_event(logging.WARNING, "exchange_upstream_error", request, status_code=500,
                  upstream_status=status_code, upstream_error=token_json.get("error"))
        raise upstream_failure(token_json)

    log_event(logging.INFO, "exchange_succeeded", request, status_code=200,
              issued_refresh=bool(token_json.get("refresh_token")), expires_in=token_json.get("expires_in"))
    return _safe_token_response(request, cfg, token_json)


# PUBLIC_INTERFACE
@router.api_route(
    "/api/refresh",
    methods=["GET", "POST"],
    tags=["Auth"],
    summary="Refresh the access token from the refresh cookie",
    description="Reads the httpOnly spotify_refresh cookie and mints a new access token. "
                "Rotates the cookie when Spotify returns a new refresh token.",
    response_model=SafeTokenResponse,
    response_model_exclude_none=True,
    responses=_error_responses,
)
async def refresh(request: Request):
    """
    Refresh using the cookie-held refresh token.

    Returns:
        200 {access_token, token_type, expires_in, scope} (+ rotated cookie)
        401 {"error": "missing_refresh"} when no cookie is present
    """
    refresh_token = read_refresh_cookie(request)
    if not refresh_token:
        log_event(logging.INFO, "refresh_without_cookie", request, status_code=401)
        raise missing_refresh()

    cfg = _load_credentials(request, "refresh_misconfigured")

    form = {"grant_type": "refresh_token", "refresh_token": refresh_token}
    try:
        status_code, token_json = await spotify_accounts.post_token_form(cfg, form)
    except httpx.HTTPError as exc:
        log_event(logging.ERROR, "refresh_transport_error", request, status_code=500, error=type(exc).__name__)
        raise transport_failure(ErrorCode.REFRESH_FAILED, exc)

    if status_code != 200:
        log_event(logging.WARNING, "refresh_upstream_error", request, status_code=500,
                  upstream_status=status_code, upstream_error=token_json.get("error"))
        raise upstream_failure(token_json)

    log_event(logging.INFO, "refresh_succeeded", request, status_code=200,
              rotated=bool(token_json.get("refresh_token")))
    return _safe_token_response(request, cfg, token_json)


# PUBLIC_INTERFACE
@router.post(
    "/api/logout",
    tags=["Auth"],
    summary="Log out",
    description="Clears the refresh-token cookie (Max-Age=0). Idempotent.",
    response_model=LogoutResponse,
)
async def logout(request: Request):
    """Clear the refresh cookie so the session cannot be silently restored."""
    resp = JSONResponse(LogoutResponse().model_dump())
    clear_refresh_cookie(resp, request, is_production())
    log_event(logging.INFO, "logout", request, status_code=200)
    return resp
