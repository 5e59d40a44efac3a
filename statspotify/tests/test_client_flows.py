import asyncio
import json
from typing import List

import httpx
import pytest

from statspotify.src.api import spotify_accounts
from statspotify.src.app import app
from statspotify.src.client.auth_flow import AuthFlow
from statspotify.src.client.config import ClientConfig
from statspotify.src.client.errors import MissingVerifierError, ServiceUnavailableError, TokenExchangeError
from statspotify.src.client.session_store import SessionStore
from statspotify.src.client.storage import PKCE_VERIFIER_KEY, SESSION_TOKEN_KEY, MemoryProfileStorage
from statspotify.src.client.token_service import TokenServiceClient

SERVICE = "http://testserver"
REDIRECT = "http://localhost:3000/"


def _config(**overrides) -> ClientConfig:
    values = {"client_id": "cid", "redirect_uri": REDIRECT, "service_url": SERVICE}
    values.update(overrides)
    return ClientConfig(**values)


def _flow(handler, storage=None, locations=None, **config_overrides) -> AuthFlow:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AuthFlow(
        _config(**config_overrides),
        storage if storage is not None else MemoryProfileStorage(),
        TokenServiceClient(SERVICE, http_client=http),
        replace_location=(locations.append if locations is not None else None),
    )


def test_complete_login_strips_code_before_exchanging():
    events: List[str] = []
    locations: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        events.append(f"exchange after {len(locations)} location update(s)")
        assert json.loads(request.content) == {"code": "c1", "code_verifier": "v1", "redirect_uri": REDIRECT}
        return httpx.Response(200, json={"access_token": "at", "token_type": "Bearer", "expires_in": 3600})

    storage = MemoryProfileStorage({PKCE_VERIFIER_KEY: "v1"})
    flow = _flow(handler, storage, locations)

    token = asyncio.run(flow.complete_login("http://localhost:3000/?code=c1&state=xyz&tab=top"))

    assert token.access_token == "at"
    assert locations == ["http://localhost:3000/?tab=top"]
    assert events == ["exchange after 1 location update(s)"]
    assert storage.get(PKCE_VERIFIER_KEY) is None
    assert json.loads(storage.get(SESSION_TOKEN_KEY))["access_token"] == "at"


def test_complete_login_without_code_is_a_no_op():
    def handler(request):
        raise AssertionError("no request expected")

    locations: List[str] = []
    flow = _flow(handler, locations=locations)
    assert asyncio.run(flow.complete_login("http://localhost:3000/")) is None
    assert locations == []


def test_missing_verifier_skips_the_network():
    def handler(request):
        raise AssertionError("no request expected")

    flow = _flow(handler)
    with pytest.raises(MissingVerifierError) as exc_info:
        asyncio.run(flow.complete_login("http://localhost:3000/?code=c1"))
    assert str(exc_info.value) == "Missing PKCE verifier. Try logging in again."


def test_denied_authorization_surfaces_as_exchange_error():
    def handler(request):
        raise AssertionError("no request expected")

    locations: List[str] = []
    flow = _flow(handler, locations=locations)
    with pytest.raises(TokenExchangeError) as exc_info:
        asyncio.run(flow.complete_login("http://localhost:3000/?error=access_denied"))
    assert exc_info.value.display_message == "access_denied"
    assert locations == ["http://localhost:3000/"]


def test_rejected_second_exchange_keeps_existing_session():
    def handler(request):
        return httpx.Response(500, json={"error": "invalid_grant", "error_description": "Invalid authorization code"})

    storage = MemoryProfileStorage({PKCE_VERIFIER_KEY: "v1"})
    flow = _flow(handler, storage)
    flow.session_store.store({"access_token": "old", "expires_in": 3600})

    with pytest.raises(TokenExchangeError) as exc_info:
        asyncio.run(flow.complete_login("http://localhost:3000/?code=used"))

    assert exc_info.value.display_message == "Invalid authorization code"
    assert flow.session_store.read().access_token == "old"
    assert storage.get(PKCE_VERIFIER_KEY) is None


def test_unreachable_service_on_exchange():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    storage = MemoryProfileStorage({PKCE_VERIFIER_KEY: "v1"})
    flow = _flow(handler, storage)
    with pytest.raises(ServiceUnavailableError):
        asyncio.run(flow.complete_login("http://localhost:3000/?code=c1"))
    assert storage.get(PKCE_VERIFIER_KEY) is None
    assert storage.get(SESSION_TOKEN_KEY) is None


def test_restore_prefers_stored_token():
    def handler(request):
        raise AssertionError("no refresh expected while a token is stored")

    flow = _flow(handler)
    flow.session_store.store({"access_token": "stored", "expires_in": 3600})
    assert asyncio.run(flow.restore_session()).access_token == "stored"


def test_restore_refreshes_when_no_token():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"access_token": "fresh", "expires_in": 3600})

    flow = _flow(handler)
    token = asyncio.run(flow.restore_session())
    assert token.access_token == "fresh"
    assert seen == [("POST", "/api/refresh")]
    assert flow.session_store.read().access_token == "fresh"


def test_restore_without_cookie_is_silently_logged_out():
    def handler(request):
        return httpx.Response(401, json={"error": "missing_refresh"})

    flow = _flow(handler)
    assert asyncio.run(flow.restore_session()) is None
    assert flow.storage.get(SESSION_TOKEN_KEY) is None


def test_restore_gives_up_after_timeout():
    async def slow_handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={"access_token": "too-late"})

    flow = _flow(slow_handler, refresh_timeout=0.05)
    assert asyncio.run(flow.restore_session()) is None
    assert flow.storage.get(SESSION_TOKEN_KEY) is None


def test_logout_clears_local_token_even_when_service_is_down():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    flow = _flow(handler)
    flow.session_store.store({"access_token": "at", "expires_in": 3600})
    asyncio.run(flow.logout())
    assert flow.storage.get(SESSION_TOKEN_KEY) is None


def test_full_login_refresh_logout_against_service(monkeypatch):
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "cid")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "csecret")
    monkeypatch.delenv("NODE_ENV", raising=False)

    grants = []

    async def fake_post_token_form(cfg, form):
        grants.append(form["grant_type"])
        if form["grant_type"] == "authorization_code":
            return 200, {"access_token": "at-1", "token_type": "Bearer", "expires_in": 3600, "refresh_token": "rt-1"}
        assert form["refresh_token"] == "rt-1"
        return 200, {"access_token": "at-2", "token_type": "Bearer", "expires_in": 3600}

    monkeypatch.setattr(spotify_accounts, "post_token_form", fake_post_token_form)

    async def scenario():
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=SERVICE)
        storage = MemoryProfileStorage()
        clock = {"now": 1_000_000}
        session_store = SessionStore(storage, lambda: clock["now"])
        navigated: List[str] = []
        flow = AuthFlow(
            _config(),
            storage,
            TokenServiceClient(SERVICE, http_client=http),
            session_store=session_store,
            navigate=navigated.append,
        )
        try:
            flow.begin_login()
            assert navigated and storage.get(PKCE_VERIFIER_KEY)

            token = await flow.complete_login("http://localhost:3000/?code=c1")
            assert token.access_token == "at-1"
            # The refresh token lives only in the cookie jar, never in profile storage
            assert "rt-1" not in json.dumps(storage._data)
            assert http.cookies.get("spotify_refresh") == "rt-1"

            # An hour later the stored token has lapsed and the cookie restores the session
            clock["now"] += 3600 * 1000
            restored = await flow.restore_session()
            assert restored.access_token == "at-2"

            await flow.logout()
            assert storage.get(SESSION_TOKEN_KEY) is None
            assert await flow.restore_session() is None
        finally:
            await http.aclose()

    asyncio.run(scenario())
    assert grants == ["authorization_code", "refresh_token"]
