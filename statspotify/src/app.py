from __future__ import annotations

# Load .env and configure logging as early as possible
from statspotify.src import startup  # noqa: F401

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from statspotify.src.api import health as health_router
from statspotify.src.api import token_routes as token_router
from statspotify.src.api.errors import (
    ErrorCode,
    TokenServiceError,
    method_not_allowed_handler,
    token_service_error_handler,
)
from statspotify.src.api.observability import APP_LOGGER, RequestIDMiddleware
from statspotify.src.api.settings import get_cors_origins

openapi_tags = [
    {"name": "Health", "description": "Health and readiness checks."},
    {"name": "Auth", "description": "Spotify Authorization Code + PKCE token exchange, refresh and logout."},
]


# PUBLIC_INTERFACE
def create_app() -> FastAPI:
    """Create and configure the FastAPI app.

    Notes:
        - Mounts the token router: POST /api/exchange, GET|POST /api/refresh, POST /api/logout.
        - Mounts GET /api/health (presence-only credential flags).
        - Error bodies are flat {"error": ...} objects, not FastAPI's {"detail": ...} envelope.
    """
    app = FastAPI(
        title="StatSpotify Token Service",
        description="Keeps the Spotify client secret and refresh token out of the browser during token exchange and refresh.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    app.add_middleware(RequestIDMiddleware)

    configured_origins = get_cors_origins()
    # Never '*' here: the refresh cookie needs allow_credentials=True
    app.add_middleware(
        CORSMiddleware,
        allow_origins=configured_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    app.add_exception_handler(TokenServiceError, token_service_error_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Capture any unhandled exception, log it, and return a sanitized 500 with request_id."""
        rid = getattr(request.state, "request_id", None)
        APP_LOGGER.exception("Unhandled exception", extra={
            "request_id": rid,
            "path": request.url.path,
            "method": request.method,
            "event": "unhandled_exception",
        })
        return JSONResponse(
            status_code=500,
            content={"error": ErrorCode.INTERNAL_ERROR, "request_id": rid},
        )

    app.include_router(health_router.router)
    app.include_router(token_router.router)

    logging.getLogger("startup").info("CORS configured with allow_credentials=True; allowed_origins=%s", configured_origins)
    return app


# PUBLIC_INTERFACE
app = create_app()


# PUBLIC_INTERFACE
def run():
    """Convenience runner for local/CI.

    Reads:
        PORT: Optional port to bind (default: 3001)
        HOST: Optional host to bind (default: 0.0.0.0)
    """
    import uvicorn

    port = int(os.getenv("PORT", "3001"))
    host = os.getenv("HOST", "0.0.0.0")
    uvicorn.run("statspotify.src.app:app", host=host, port=port, reload=False)
