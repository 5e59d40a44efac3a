"""
Client for the Spotify accounts token endpoint.

Both grant types share one request shape: a form-encoded POST authenticated with the
client credentials as HTTP Basic. Only this module ever sees the client secret.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Tuple

import httpx

LOG = logging.getLogger(__name__)


def _basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def _decode_body(resp: Any) -> Dict[str, Any]:
    """Decode the upstream body; non-JSON bodies are wrapped so they can still be forwarded."""
    try:
        body = resp.json()
    except ValueError:
        return {"error": "upstream_error", "error_description": getattr(resp, "text", "")}
    if not isinstance(body, dict):
        return {"error": "upstream_error", "error_description": str(body)}
    return body


# PUBLIC_INTERFACE
async def post_token_form(cfg: dict, form: Dict[str, str]) -> Tuple[int, Dict[str, Any]]:
    """POST a token grant to the configured token URL.

    Arguments:
    - cfg: config dict from get_spotify_oauth_config()
    - form: grant fields, e.g. {"grant_type": "refresh_token", "refresh_token": "..."}

    Returns:
        (status_code, decoded JSON body). Transport errors (httpx.HTTPError) propagate.
    """
    headers = {
        "Authorization": _basic_auth_header(cfg["client_id"], cfg["client_secret"]),
        "Content-Type": "application/x-www-form-urlencoded",
    }
    async with httpx.AsyncClient(timeout=cfg.get("timeout", 20.0)) as client:
        resp = await client.post(cfg["token_url"], data=form, headers=headers)
    body = _decode_body(resp)
    if resp.status_code != 200:
        # Error bodies from the token endpoint hold an error tag and description only
        LOG.warning(
            "Token endpoint rejected %s grant: %s %s",
            form.get("grant_type"),
            resp.status_code,
            body.get("error"),
        )
    return resp.status_code, body
