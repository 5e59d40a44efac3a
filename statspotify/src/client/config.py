"""
Client-side configuration for the dashboard.

Env vars:
- SPOTIFY_CLIENT_ID: public client id (safe to expose; PKCE flow uses it)
- STATSPOTIFY_REDIRECT_URI: must exactly match the URI registered with Spotify
- STATSPOTIFY_SERVICE_URL: base URL of the token service (default http://localhost:3001)
- STATSPOTIFY_PROFILE_DIR: profile storage directory (default ~/.statspotify)
- STATSPOTIFY_SCOPES: space-separated scopes
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from statspotify.src import startup  # noqa: F401

AUTH_ENDPOINT = "https://accounts.spotify.com/authorize"
DEFAULT_SCOPES = "user-top-read user-read-private user-read-email"
DEFAULT_SERVICE_URL = "http://localhost:3001"
DEFAULT_REDIRECT_URI = "http://localhost:3000/"
DEFAULT_PROFILE_DIR = Path.home() / ".statspotify"

# Startup refresh gives up after this many seconds; first-time visitors have no cookie at all
REFRESH_TIMEOUT_SECONDS = 3.0
API_TIMEOUT_SECONDS = 10.0


@dataclass
class ClientConfig:
    client_id: str
    redirect_uri: str
    service_url: str = DEFAULT_SERVICE_URL
    scopes: str = DEFAULT_SCOPES
    auth_endpoint: str = AUTH_ENDPOINT
    refresh_timeout: float = REFRESH_TIMEOUT_SECONDS
    api_timeout: float = API_TIMEOUT_SECONDS
    show_dialog: bool = True


# PUBLIC_INTERFACE
def load_client_config() -> ClientConfig:
    """Build a ClientConfig from the environment."""
    return ClientConfig(
        client_id=os.getenv("SPOTIFY_CLIENT_ID", "").strip(),
        redirect_uri=os.getenv("STATSPOTIFY_REDIRECT_URI", "").strip() or DEFAULT_REDIRECT_URI,
        service_url=(os.getenv("STATSPOTIFY_SERVICE_URL", "").strip() or DEFAULT_SERVICE_URL).rstrip("/"),
        scopes=os.getenv("STATSPOTIFY_SCOPES", "").strip() or DEFAULT_SCOPES,
    )


# PUBLIC_INTERFACE
def get_profile_dir() -> Path:
    raw = os.getenv("STATSPOTIFY_PROFILE_DIR", "").strip()
    return Path(raw).expanduser() if raw else DEFAULT_PROFILE_DIR
