"""
Package marker for statspotify.

Holds the token exchange service (statspotify.src.api) and the dashboard
client library (statspotify.src.client).
"""


# PUBLIC_INTERFACE
def get_version() -> str:
    """Return the statspotify package version."""
    return "0.1.0"
