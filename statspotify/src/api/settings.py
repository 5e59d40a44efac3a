"""
Environment-driven settings for the Spotify token exchange service.

Required/Optional env vars:
- SPOTIFY_CLIENT_ID (required for exchange/refresh)
- SPOTIFY_CLIENT_SECRET (required for exchange/refresh; never logged or returned)
- NODE_ENV (optional; 'production' marks the refresh cookie Secure)
- SPOTIFY_TOKEN_URL (optional; defaults to the Spotify accounts token endpoint)
- SPOTIFY_TOKEN_TIMEOUT_SECONDS (optional; upstream request timeout, default 20)
- BACKEND_CORS_ORIGINS (optional; comma-separated origins for CORS)
- FRONTEND_BASE_URL (optional; exact frontend origin, added to CORS origins)
"""

from __future__ import annotations

# Ensure .env is loaded and logging configured before reading env
from statspotify.src import startup  # noqa: F401

import logging
import os
from typing import List

_logger = logging.getLogger("config.spotify")

DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_TOKEN_TIMEOUT_SECONDS = 20.0


def _get_timeout_seconds() -> float:
    """Resolve the upstream token request timeout."""
    raw = os.getenv("SPOTIFY_TOKEN_TIMEOUT_SECONDS", "").strip()
    if not raw:
        return DEFAULT_TOKEN_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        _logger.warning(
            "SPOTIFY_TOKEN_TIMEOUT_SECONDS=%r is not a number. Using %s.", raw, DEFAULT_TOKEN_TIMEOUT_SECONDS
        )
        return DEFAULT_TOKEN_TIMEOUT_SECONDS


# PUBLIC_INTERFACE
def get_spotify_oauth_config() -> dict:
    """Return a dict of Spotify OAuth config from env.

    Values are read on every call so that tests and process managers can change the
    environment without re-importing the module. The client secret is never logged.
    """
    cfg = {
        "client_id": os.getenv("SPOTIFY_CLIENT_ID", "").strip(),
        "client_secret": os.getenv("SPOTIFY_CLIENT_SECRET", "").strip(),
        "token_url": os.getenv("SPOTIFY_TOKEN_URL", "").strip() or DEFAULT_TOKEN_URL,
        "timeout": _get_timeout_seconds(),
        "production": is_production(),
    }

    redacted_client = (cfg["client_id"][:4] + "...") if cfg["client_id"] else ""
    _logger.debug(
        "OAuth config loaded: client_id=%s, has_secret=%s, token_url=%s, production=%s",
        redacted_client,
        bool(cfg["client_secret"]),
        cfg["token_url"],
        cfg["production"],
    )
    return cfg


# PUBLIC_INTERFACE
def has_client_credentials(cfg: dict) -> bool:
    """True when both client id and client secret are configured."""
    return bool(cfg.get("client_id")) and bool(cfg.get("client_secret"))


# PUBLIC_INTERFACE
def is_production() -> bool:
    """NODE_ENV=production switches on the Secure cookie attribute."""
    return os.getenv("NODE_ENV", "").strip().lower() == "production"


# PUBLIC_INTERFACE
def get_cors_origins() -> List[str]:
    """Parse BACKEND_CORS_ORIGINS env var into list of origins for CORS.

    Behavior:
    - BACKEND_CORS_ORIGINS: comma-separated list of origins.
    - FRONTEND_BASE_URL is appended when present.
    - If empty, default to ["http://localhost:3000"] for local development.
    - Never return "*": the refresh cookie requires allow_credentials=True.
    """
    raw = os.getenv("BACKEND_CORS_ORIGINS", "")
    origins = [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
    frontend = os.getenv("FRONTEND_BASE_URL", "").strip().rstrip("/")
    if frontend and frontend not in origins:
        origins.append(frontend)
    if not origins:
        origins = ["http://localhost:3000"]
    return [o for o in origins if o != "*"]
