import base64
import hashlib
import re
import urllib.parse

import pytest

from statspotify.src.client import authorize
from statspotify.src.client.config import ClientConfig
from statspotify.src.client.pkce import create_pkce_pair, derive_challenge, generate_verifier
from statspotify.src.client.storage import PKCE_VERIFIER_KEY, MemoryProfileStorage


def _config(**overrides):
    values = {"client_id": "cid123", "redirect_uri": "http://localhost:3000/"}
    values.update(overrides)
    return ClientConfig(**values)


def test_verifier_is_128_unreserved_chars():
    verifier = generate_verifier()
    assert len(verifier) == 128
    assert re.fullmatch(r"[0-9a-f]{128}", verifier)
    assert generate_verifier() != verifier


def test_challenge_is_unpadded_base64url_sha256():
    verifier = "a" * 64
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip("=")
    challenge = derive_challenge(verifier)
    assert challenge == expected
    assert len(challenge) == 43
    assert "=" not in challenge and "+" not in challenge and "/" not in challenge


def test_rfc7636_reference_vector():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    assert derive_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_new_pair_replaces_stored_verifier():
    storage = MemoryProfileStorage()
    first = create_pkce_pair(storage)
    second = create_pkce_pair(storage)
    assert storage.get(PKCE_VERIFIER_KEY) == second.verifier
    assert first.verifier != second.verifier
    assert first.challenge != second.challenge


def test_authorize_url_params():
    url = authorize.build_authorize_url(_config(), "chal")
    assert url.startswith("https://accounts.spotify.com/authorize?")
    query = urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)
    assert query["client_id"] == ["cid123"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["http://localhost:3000/"]
    assert query["code_challenge_method"] == ["S256"]
    assert query["code_challenge"] == ["chal"]
    assert query["scope"] == ["user-top-read user-read-private user-read-email"]
    assert query["show_dialog"] == ["true"]
    # Scope separators go out as %20, never '+'
    assert "scope=user-top-read%20user-read-private%20user-read-email" in url
    assert "redirect_uri=http%3A%2F%2Flocalhost%3A3000%2F" in url


def test_authorize_url_without_show_dialog():
    url = authorize.build_authorize_url(_config(show_dialog=False), "chal")
    assert "show_dialog" not in url


def test_begin_login_stores_verifier_and_navigates():
    storage = MemoryProfileStorage()
    visited = []
    authorize.begin_login(storage, _config(), visited.append)

    assert len(visited) == 1
    verifier = storage.get(PKCE_VERIFIER_KEY)
    query = urllib.parse.parse_qs(urllib.parse.urlsplit(visited[0]).query)
    assert query["code_challenge"] == [derive_challenge(verifier)]


def test_begin_login_requires_client_id():
    storage = MemoryProfileStorage()
    with pytest.raises(ValueError):
        authorize.begin_login(storage, _config(client_id=""), lambda url: None)
    assert storage.get(PKCE_VERIFIER_KEY) is None


def test_load_client_config_from_env(monkeypatch):
    from statspotify.src.client.config import load_client_config

    monkeypatch.setenv("SPOTIFY_CLIENT_ID", " cid-env ")
    monkeypatch.setenv("STATSPOTIFY_SERVICE_URL", "http://svc:9000/")
    monkeypatch.delenv("STATSPOTIFY_REDIRECT_URI", raising=False)
    monkeypatch.delenv("STATSPOTIFY_SCOPES", raising=False)
    cfg = load_client_config()
    assert cfg.client_id == "cid-env"
    assert cfg.service_url == "http://svc:9000"
    assert cfg.redirect_uri == "http://localhost:3000/"
    assert cfg.refresh_timeout == 3.0
