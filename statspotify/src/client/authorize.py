"""Authorization redirect: builds the Spotify /authorize URL and hands it to the navigator."""

from __future__ import annotations

import logging
import urllib.parse
import webbrowser
from typing import Callable, Optional

from .config import ClientConfig
from .pkce import create_pkce_pair
from .storage import ProfileStorage

LOG = logging.getLogger(__name__)

Navigator = Callable[[str], object]


# PUBLIC_INTERFACE
def build_authorize_url(config: ClientConfig, challenge: str) -> str:
    """Return the /authorize URL carrying the S256 challenge and requested scopes."""
    params = {
        "client_id": config.client_id,
        "response_type": "code",
        "redirect_uri": config.redirect_uri,
        "scope": config.scopes,
        "code_challenge_method": "S256",
        "code_challenge": challenge,
    }
    if config.show_dialog:
        # Let the user pick an account instead of silently reusing the last one
        params["show_dialog"] = "true"
    return f"{config.auth_endpoint}?{urllib.parse.urlencode(params, quote_via=urllib.parse.quote)}"


# PUBLIC_INTERFACE
def begin_login(storage: ProfileStorage, config: ClientConfig, navigate: Optional[Navigator] = None) -> None:
    """Start a login attempt: new PKCE pair, then a full-page navigation to Spotify.

    A second call overwrites the stored verifier, invalidating the first attempt.
    """
    if not config.client_id:
        raise ValueError("No SPOTIFY_CLIENT_ID configured; cannot start login.")
    pair = create_pkce_pair(storage)
    url = build_authorize_url(config, pair.challenge)
    LOG.info("Redirecting to Spotify authorization (scopes=%s)", config.scopes)
    (navigate or webbrowser.open)(url)
