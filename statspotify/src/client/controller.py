"""
Dashboard controller.

UI events arrive as intents and are handled one at a time. Expected failures end up
in `notice` for the view to show; dispatch() does not raise for them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .auth_flow import AuthFlow
from .dashboard import DashboardContext
from .errors import MissingVerifierError, ServiceUnavailableError, TokenExchangeError
from .session_store import SessionToken
from .web_api import SpotifyWebApi, TrackInsights, WebApiError

LOG = logging.getLogger(__name__)

FETCH_FAILED_NOTICE = "Failed to fetch Spotify data. Please try logging in again."
EXCHANGE_FAILED_NOTICE = "Token exchange failed. Try again."
SIGNED_OUT_NOTICE = "Signed out"
LOGIN_REQUIRED_NOTICE = "Please log in to view track details"
TRACK_FAILED_NOTICE = "Failed to load track details."


@dataclass(frozen=True)
class PageLoaded:
    url: str


@dataclass(frozen=True)
class LoginRequested:
    pass


@dataclass(frozen=True)
class LogoutRequested:
    pass


@dataclass(frozen=True)
class TrackSelected:
    track_id: str


Intent = Union[PageLoaded, LoginRequested, LogoutRequested, TrackSelected]


class DashboardController:
    def __init__(
        self,
        flow: AuthFlow,
        context: Optional[DashboardContext] = None,
        web_api_factory: Callable[[str], SpotifyWebApi] = SpotifyWebApi,
    ):
        self.flow = flow
        self.context = context or DashboardContext()
        self.web_api_factory = web_api_factory
        self.notice: Optional[str] = None
        self.logged_in = False
        self.track_details: Optional[TrackInsights] = None

    # PUBLIC_INTERFACE
    async def dispatch(self, intent: Intent) -> None:
        """Handle one UI intent."""
        if isinstance(intent, PageLoaded):
            await self._page_loaded(intent.url)
        elif isinstance(intent, LoginRequested):
            self._login_requested()
        elif isinstance(intent, LogoutRequested):
            await self._logout_requested()
        elif isinstance(intent, TrackSelected):
            await self._track_selected(intent.track_id)
        else:
            raise TypeError(f"Unknown intent: {intent!r}")

    async def _page_loaded(self, url: str) -> None:
        token: Optional[SessionToken] = None
        exchange_failed = True
        try:
            token = await self.flow.complete_login(url)
            exchange_failed = False
        except TokenExchangeError as exc:
            self.notice = f"Token exchange returned an error: {exc.display_message}"
        except MissingVerifierError as exc:
            self.notice = str(exc)
        except ServiceUnavailableError:
            self.notice = EXCHANGE_FAILED_NOTICE

        if token is None and not exchange_failed:
            token = await self.flow.restore_session()

        # A failed exchange leaves any previously stored session in place
        if token is None:
            token = self.flow.session_store.read()

        if token is None:
            self.logged_in = False
            return
        await self._load_dashboard(token)

    async def _load_dashboard(self, token: SessionToken) -> None:
        api = self.web_api_factory(token.access_token)
        try:
            data = await api.load_dashboard()
        except WebApiError as exc:
            LOG.warning("Dashboard fetch failed: %s", exc)
            self.flow.session_store.clear()
            self.context.reset()
            self.notice = FETCH_FAILED_NOTICE
            self.logged_in = False
            return
        finally:
            await api.aclose()
        self.context.populate(data)
        self.logged_in = True

    def _login_requested(self) -> None:
        try:
            self.flow.begin_login()
        except ValueError as exc:
            self.notice = str(exc)

    async def _logout_requested(self) -> None:
        await self.flow.logout()
        self.context.reset()
        self.track_details = None
        self.logged_in = False
        self.notice = SIGNED_OUT_NOTICE

    async def _track_selected(self, track_id: str) -> None:
        token = self.flow.session_store.read()
        if token is None:
            self.notice = LOGIN_REQUIRED_NOTICE
            return
        api = self.web_api_factory(token.access_token)
        try:
            self.track_details = await api.track_insights(track_id)
        except WebApiError as exc:
            LOG.warning("Track details fetch failed: %s", exc)
            self.track_details = None
            if exc.invalid_token:
                self.flow.session_store.clear()
                self.context.reset()
                self.logged_in = False
                self.notice = FETCH_FAILED_NOTICE
            else:
                self.notice = TRACK_FAILED_NOTICE
        finally:
            await api.aclose()
