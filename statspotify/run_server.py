#!/usr/bin/env python3
"""
Convenience launcher to run the token service bound to 0.0.0.0:3001.

Usage:
  python -m statspotify.run_server
  statspotify-server

No secrets are required at import time; missing Spotify credentials surface as
500 responses from /api/exchange and /api/refresh and as flags on /api/health.
"""


# PUBLIC_INTERFACE
def main():
    """Start uvicorn for the token service on the configured host/port."""
    import os
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3001"))

    # Use the fully qualified path to avoid double-importing the app
    uvicorn.run("statspotify.src.app:app", host=host, port=port, reload=False, lifespan="on")


if __name__ == "__main__":
    main()
