# PUBLIC_INTERFACE
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .schemas import HealthResponse
from .settings import get_spotify_oauth_config

router = APIRouter()


@router.get(
    "/api/health",
    tags=["Health"],
    summary="Health Check",
    description="Health check endpoint indicating the API is up.\n\nReturns:\n    JSON with ok and presence flags for the Spotify client credentials (never their values).",
    response_model=HealthResponse,
)
def health_check():
    """Report liveness and whether the Spotify credentials are configured."""
    cfg = get_spotify_oauth_config()
    body = HealthResponse(hasClient=bool(cfg["client_id"]), hasSecret=bool(cfg["client_secret"]))
    return JSONResponse(body.model_dump())
