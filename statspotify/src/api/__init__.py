"""
API package initializer for the token exchange service routers.

This module exposes the routers so other modules can import
from statspotify.src.api import <module> consistently.
"""

# NOTE: Do NOT import statspotify.src.app here to avoid a circular import.
from . import health  # noqa: F401
from . import token_routes  # noqa: F401

__all__ = [
    "health",
    "token_routes",
]
