from typing import Optional


class AuthFlowError(Exception):
    """Base class for login/refresh failures surfaced to the dashboard."""


class MissingVerifierError(AuthFlowError):
    """The redirect came back but no PKCE verifier is stored; login must restart."""


class TokenExchangeError(AuthFlowError):
    """The token service (or Spotify behind it) rejected the exchange."""

    def __init__(self, error: str, description: Optional[str] = None, status_code: Optional[int] = None):
        self.error = error
        self.description = description
        self.status_code = status_code
        super().__init__(description or error)

    @property
    def display_message(self) -> str:
        return self.description or self.error


class ServiceUnavailableError(AuthFlowError):
    """The token service could not be reached or timed out."""
