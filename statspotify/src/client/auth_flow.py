"""
Client half of the login/session lifecycle.

- begin_login: PKCE pair + redirect to Spotify
- complete_login: redirect landed with ?code=..., exchange it through the token service
- restore_session: stored token, else one bounded-time refresh through the cookie
- logout: best-effort service call, then unconditional local teardown

All state changes happen after the network result they depend on has completed.
"""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Callable, Optional

import httpx

from . import authorize
from .config import ClientConfig
from .errors import MissingVerifierError, ServiceUnavailableError, TokenExchangeError
from .session_store import SessionStore, SessionToken
from .storage import PKCE_VERIFIER_KEY, ProfileStorage
from .token_service import TokenServiceClient

LOG = logging.getLogger(__name__)

# Query parameters Spotify appends to the redirect URI
_AUTH_RESPONSE_PARAMS = ("code", "state", "error", "error_description")


def _strip_auth_params(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    kept = [(k, v) for k, v in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
            if k not in _AUTH_RESPONSE_PARAMS]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(kept)))


def _query_param(url: str, name: str) -> Optional[str]:
    values = urllib.parse.parse_qs(urllib.parse.urlsplit(url).query).get(name)
    return values[0] if values else None


class AuthFlow:
    """Login, silent refresh and logout against one profile storage and one token service."""

    def __init__(
        self,
        config: ClientConfig,
        storage: ProfileStorage,
        token_service: TokenServiceClient,
        session_store: Optional[SessionStore] = None,
        navigate: Optional[authorize.Navigator] = None,
        replace_location: Optional[Callable[[str], object]] = None,
    ):
        self.config = config
        self.storage = storage
        self.token_service = token_service
        self.session_store = session_store or SessionStore(storage)
        self.navigate = navigate
        self.replace_location = replace_location or (lambda url: None)

    def begin_login(self) -> None:
        authorize.begin_login(self.storage, self.config, self.navigate)

    async def complete_login(self, current_url: str) -> Optional[SessionToken]:
        """Exchange the code from the redirect URL. Returns None when the URL carries no code.

        Raises:
            MissingVerifierError: no stored verifier; the user must restart login.
            TokenExchangeError: the service or Spotify rejected the exchange.
            ServiceUnavailableError: the service could not be reached.
        """
        code = _query_param(current_url, "code")
        denied = _query_param(current_url, "error")
        if not code and not denied:
            return None

        # Drop the single-use code from the visible URL before anything else can resubmit it
        self.replace_location(_strip_auth_params(current_url))

        if not code:
            raise TokenExchangeError(denied, _query_param(current_url, "error_description"))

        verifier = self.storage.get(PKCE_VERIFIER_KEY)
        if not verifier:
            raise MissingVerifierError("Missing PKCE verifier. Try logging in again.")

        try:
            status_code, body = await self.token_service.exchange(code, verifier, self.config.redirect_uri)
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(f"Token exchange failed: {type(exc).__name__}") from exc
        finally:
            # The code is spent either way; its verifier can never be used again
            self.storage.remove(PKCE_VERIFIER_KEY)

        if status_code != 200 or body.get("error") or not body.get("access_token"):
            LOG.warning("Token exchange rejected: status=%s error=%s", status_code, body.get("error"))
            raise TokenExchangeError(
                str(body.get("error") or f"HTTP {status_code}"),
                body.get("error_description"),
                status_code,
            )

        token = self.session_store.store(body)
        LOG.info("Token exchange succeeded; token expires in %ss", token.expires_in)
        return token

    async def restore_session(self) -> Optional[SessionToken]:
        """Return a usable token without user interaction, or None (logged out, no notice)."""
        token = self.session_store.read()
        if token:
            return token

        try:
            status_code, body = await asyncio.wait_for(
                self.token_service.refresh(), timeout=self.config.refresh_timeout
            )
        except asyncio.TimeoutError:
            LOG.info("Session check timeout - no active session")
            return None
        except httpx.HTTPError as exc:
            LOG.info("Server refresh not available: %s", type(exc).__name__)
            return None

        if status_code != 200 or not body.get("access_token"):
            # No cookie or a rejected refresh: expected for first-time visitors
            LOG.info("No server session available (status=%s)", status_code)
            return None

        return self.session_store.store(body)

    async def logout(self) -> None:
        """Clear the server cookie if reachable; always clear the local session token."""
        try:
            status_code = await self.token_service.logout()
            if status_code != 200:
                LOG.warning("logout call returned %s", status_code)
        except httpx.HTTPError as exc:
            LOG.warning("logout call failed: %s", exc)
        self.session_store.clear()
