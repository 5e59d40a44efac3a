from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

MISSING_PARAMS_MESSAGE = "missing code or code_verifier"
MISCONFIGURED_MESSAGE = "server misconfigured: missing SPOTIFY_CLIENT_ID/SECRET"


# PUBLIC_INTERFACE
class ErrorCode:
    """Enum-like class for the machine-readable tags used in logs and error bodies."""
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    MISSING_PARAMS = "MISSING_PARAMS"
    MISSING_REFRESH = "missing_refresh"
    MISCONFIGURED = "MISCONFIGURED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    EXCHANGE_FAILED = "exchange_failed"
    REFRESH_FAILED = "refresh_failed"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# PUBLIC_INTERFACE
class TokenServiceError(Exception):
    """Error raised by token routes; `body` is rendered verbatim as the JSON response."""

    def __init__(self, status_code: int, body: Dict[str, Any], code: str = ErrorCode.INTERNAL_ERROR,
                 headers: Optional[Dict[str, str]] = None):
        super().__init__(f"{status_code} {code}")
        self.status_code = status_code
        self.body = body
        self.code = code
        self.headers = headers or {}


def missing_params() -> TokenServiceError:
    return TokenServiceError(400, {"error": MISSING_PARAMS_MESSAGE}, ErrorCode.MISSING_PARAMS)


def missing_refresh() -> TokenServiceError:
    return TokenServiceError(401, {"error": ErrorCode.MISSING_REFRESH}, ErrorCode.MISSING_REFRESH)


def misconfigured() -> TokenServiceError:
    return TokenServiceError(500, {"error": MISCONFIGURED_MESSAGE}, ErrorCode.MISCONFIGURED)


def upstream_failure(body: Dict[str, Any]) -> TokenServiceError:
    """Forward the authorization server's error body as-is with a 500."""
    return TokenServiceError(500, body, ErrorCode.UPSTREAM_ERROR)


def transport_failure(tag: str, exc: Exception) -> TokenServiceError:
    return TokenServiceError(500, {"error": tag, "message": str(exc)}, tag)


async def token_service_error_handler(request: Request, exc: TokenServiceError) -> JSONResponse:
    """Render TokenServiceError bodies without the FastAPI 'detail' envelope."""
    return JSONResponse(status_code=exc.status_code, content=exc.body, headers=exc.headers or None)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Render 405 as {"error": "Method not allowed"}, keeping the Allow header; defer other statuses."""
    if exc.status_code == 405:
        return JSONResponse(
            status_code=405,
            content={"error": "Method not allowed"},
            headers=getattr(exc, "headers", None),
        )
    return await http_exception_handler(request, exc)
