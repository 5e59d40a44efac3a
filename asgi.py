"""
ASGI compatibility entrypoint.

Allows starting the app from the repository root with:
  uvicorn asgi:app --host 0.0.0.0 --port 3001
"""

# PUBLIC_INTERFACE
# Expose FastAPI app for uvicorn
from statspotify.src.app import app  # noqa: F401
