"""
Dashboard client library.

Plays the browser's part in the login flow: PKCE and the authorize redirect,
completing the code exchange through the token service, silent refresh via the
service-held cookie, and the Web API calls that feed the dashboard views.
"""

from .auth_flow import AuthFlow  # noqa: F401
from .controller import (  # noqa: F401
    DashboardController,
    LoginRequested,
    LogoutRequested,
    PageLoaded,
    TrackSelected,
)
from .dashboard import DashboardContext  # noqa: F401

__all__ = [
    "AuthFlow",
    "DashboardContext",
    "DashboardController",
    "LoginRequested",
    "LogoutRequested",
    "PageLoaded",
    "TrackSelected",
]
