"""Session token storage with lazy expiry."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from .storage import SESSION_TOKEN_KEY, ProfileStorage

LOG = logging.getLogger(__name__)


def _current_time_ms() -> int:
    return int(time.time() * 1000)


class SessionToken(BaseModel):
    """Access token as held by the client. Never contains a refresh token."""
    access_token: str = Field(..., description="Bearer token for the Web API")
    token_type: Optional[str] = Field(None, description="Normally 'Bearer'")
    expires_in: Optional[int] = Field(None, description="Lifetime in seconds")
    scope: Optional[str] = Field(None, description="Granted scopes")
    obtained_at: Optional[int] = Field(None, description="Epoch milliseconds when the token was stored")

    def expires_at(self) -> Optional[int]:
        """Absolute expiry instant in epoch milliseconds, if known."""
        if self.expires_in is None or self.obtained_at is None:
            return None
        return self.obtained_at + self.expires_in * 1000

    def is_expired(self, now_ms: int) -> bool:
        exp = self.expires_at()
        return exp is not None and now_ms >= exp


class SessionStore:
    """
    Holds the current access token in profile storage.

    - store() replaces the previous value in one write
    - read() treats a token at or past its expiry instant as absent and purges it
    - clear() removes it
    """

    def __init__(self, storage: ProfileStorage, clock_ms: Callable[[], int] = _current_time_ms):
        self.storage = storage
        self.clock_ms = clock_ms

    def store(self, token_fields: Dict[str, Any]) -> SessionToken:
        fields = {k: v for k, v in token_fields.items() if k != "refresh_token"}
        fields["obtained_at"] = self.clock_ms()
        token = SessionToken.model_validate(fields)
        self.storage.set(SESSION_TOKEN_KEY, token.model_dump_json(exclude_none=True))
        return token

    def read(self) -> Optional[SessionToken]:
        raw = self.storage.get(SESSION_TOKEN_KEY)
        if not raw:
            return None
        try:
            token = SessionToken.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            LOG.info("Discarding unreadable stored session token")
            self.clear()
            return None
        if token.is_expired(self.clock_ms()):
            LOG.info("Stored session token expired; purging")
            self.clear()
            return None
        return token

    def clear(self) -> None:
        self.storage.remove(SESSION_TOKEN_KEY)
