"""
Structured logging, secret redaction and request-id propagation for the token service.

Log lines reachable by operators must never carry the client secret, the refresh token,
the authorization code or the PKCE verifier. Every field passed through log_event() is
redacted by key before it reaches the formatter.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


class SafeJSONFormatter(logging.Formatter):
    """A minimal JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).isoformat()
        payload: Dict[str, Any] = {
            "timestamp": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event": getattr(record, "event", None),
            "request_id": getattr(record, "request_id", None),
            "path": getattr(record, "path", None),
            "method": getattr(record, "method", None),
            "status_code": getattr(record, "status_code", None),
            "headers": getattr(record, "headers", None),
            "extra": getattr(record, "extra", None),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        cleaned = {k: v for k, v in payload.items() if v is not None}
        try:
            return json.dumps(cleaned, ensure_ascii=False)
        except (TypeError, ValueError):
            return f"{ts} {record.levelname} {record.name} {record.getMessage()}"


def _configure_logging() -> logging.Logger:
    """Initialize the service logger with JSON formatter and level from env LOG_LEVEL."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("statspotify")
    logger.setLevel(level)

    # Avoid adding multiple handlers on hot reload
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(SafeJSONFormatter())
        logger.addHandler(handler)
        # Prevent duplicate lines through the root handler installed by startup/uvicorn
        logger.propagate = False

    # httpx logs request URLs at INFO; keep it quiet
    for noisy in ("httpx", "httpcore"):
        nl = logging.getLogger(noisy)
        if nl.level == logging.NOTSET:
            nl.setLevel(logging.WARNING)

    return logger


APP_LOGGER = _configure_logging()

_SENSITIVE_KEYS = {
    "code",
    "verifier",
    "token",
    "secret",
    "authorization",
    "cookie",
    "refresh",
}


def _redact_value(_: Any) -> str:
    return "***redacted***"


def _should_redact(key: str) -> bool:
    key_lower = key.lower()
    return any(s in key_lower for s in _SENSITIVE_KEYS)


# PUBLIC_INTERFACE
def redact_mapping(mapping: Dict[str, Any]) -> Dict[str, Any]:
    """Return a redacted copy of a mapping for safe logging."""
    redacted: Dict[str, Any] = {}
    for k, v in mapping.items():
        # Presence flags like has_code carry no secret
        if _should_redact(k) and not isinstance(v, bool):
            redacted[k] = _redact_value(v)
        elif isinstance(v, (list, tuple)):
            redacted[k] = [str(i) for i in v]
        elif isinstance(v, (bool, int, float)) or v is None:
            redacted[k] = v
        else:
            redacted[k] = str(v)
    return redacted


def _get_headers_subset(request: Request) -> Dict[str, str]:
    """Extract a safe subset of headers for observability (non-sensitive)."""
    safe_header_names = [
        "user-agent",
        "x-forwarded-for",
        "x-real-ip",
        "x-request-id",
        "x-forwarded-proto",
        "x-forwarded-host",
    ]
    headers = {}
    for name in safe_header_names:
        val = request.headers.get(name)
        if val is not None:
            headers[name] = val
    return headers


# PUBLIC_INTERFACE
def log_event(
    level: int,
    event: str,
    request: Request,
    status_code: Optional[int] = None,
    **fields: Any,
) -> None:
    """Centralized structured logging with common request context."""
    rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    extra = {
        "event": event,
        "request_id": rid,
        "path": str(request.url.path),
        "method": request.method,
        "status_code": status_code,
        "headers": _get_headers_subset(request),
        "extra": redact_mapping(fields) if fields else None,
    }
    APP_LOGGER.log(level, event, extra=extra)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """ASGI middleware to assign/propagate X-Request-ID and echo it in responses."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        except Exception:
            APP_LOGGER.exception("Unhandled exception in middleware", extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "event": "unhandled_exception_middleware",
            })
            raise
        response.headers["X-Request-ID"] = request_id
        return response
