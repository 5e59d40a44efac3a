import json
import os
import stat

import pytest

from statspotify.src.client.session_store import SessionStore
from statspotify.src.client.storage import (
    PKCE_VERIFIER_KEY,
    SESSION_TOKEN_KEY,
    FileProfileStorage,
    MemoryProfileStorage,
)

NOW = 1_700_000_000_000


class FakeClock:
    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def test_store_strips_refresh_token_and_stamps_time():
    storage = MemoryProfileStorage()
    store = SessionStore(storage, FakeClock(NOW))
    token = store.store({"access_token": "at", "expires_in": 3600, "refresh_token": "rt", "token_type": "Bearer"})

    assert token.obtained_at == NOW
    raw = json.loads(storage.get(SESSION_TOKEN_KEY))
    assert raw == {"access_token": "at", "token_type": "Bearer", "expires_in": 3600, "obtained_at": NOW}
    assert "refresh_token" not in raw


def test_expired_token_is_absent_and_purged():
    storage = MemoryProfileStorage({
        SESSION_TOKEN_KEY: json.dumps({"access_token": "at", "expires_in": 3600, "obtained_at": NOW - 3601000}),
    })
    store = SessionStore(storage, FakeClock(NOW))
    assert store.read() is None
    assert storage.get(SESSION_TOKEN_KEY) is None


def test_expiry_boundary():
    clock = FakeClock(NOW)
    storage = MemoryProfileStorage()
    store = SessionStore(storage, clock)
    store.store({"access_token": "at", "expires_in": 60})

    clock.now_ms = NOW + 59_999
    assert store.read() is not None
    clock.now_ms = NOW + 60_000
    assert store.read() is None
    assert storage.get(SESSION_TOKEN_KEY) is None


def test_token_without_expiry_never_expires():
    store = SessionStore(MemoryProfileStorage(), FakeClock(NOW))
    store.store({"access_token": "at"})
    store.clock_ms = FakeClock(NOW + 10 ** 12)
    assert store.read().access_token == "at"


def test_corrupt_value_is_discarded():
    storage = MemoryProfileStorage({SESSION_TOKEN_KEY: "{not json"})
    assert SessionStore(storage, FakeClock(NOW)).read() is None
    assert storage.get(SESSION_TOKEN_KEY) is None

    storage.set(SESSION_TOKEN_KEY, json.dumps({"token_type": "Bearer"}))
    assert SessionStore(storage, FakeClock(NOW)).read() is None


def test_clear_leaves_other_keys():
    storage = MemoryProfileStorage({PKCE_VERIFIER_KEY: "v"})
    store = SessionStore(storage, FakeClock(NOW))
    store.store({"access_token": "at"})
    store.clear()
    assert storage.get(SESSION_TOKEN_KEY) is None
    assert storage.get(PKCE_VERIFIER_KEY) == "v"


def test_file_storage_persists_across_instances(tmp_path):
    first = FileProfileStorage(tmp_path / "profile")
    first.set(PKCE_VERIFIER_KEY, "v1")
    first.set(SESSION_TOKEN_KEY, "{}")

    second = FileProfileStorage(tmp_path / "profile")
    assert second.get(PKCE_VERIFIER_KEY) == "v1"
    second.remove(PKCE_VERIFIER_KEY)
    assert first.get(PKCE_VERIFIER_KEY) is None
    assert first.get(SESSION_TOKEN_KEY) == "{}"


def test_file_storage_tolerates_missing_and_corrupt_file(tmp_path):
    storage = FileProfileStorage(tmp_path)
    assert storage.get(PKCE_VERIFIER_KEY) is None
    storage.path.write_text("garbage")
    assert storage.get(PKCE_VERIFIER_KEY) is None
    storage.set(PKCE_VERIFIER_KEY, "v2")
    assert storage.get(PKCE_VERIFIER_KEY) == "v2"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_file_storage_is_owner_only_from_creation(tmp_path, monkeypatch):
    modes = []
    real_replace = os.replace

    def recording_replace(src, dst):
        # Mode of the temp file as written, before it takes the real name
        modes.append(stat.S_IMODE(os.stat(src).st_mode))
        return real_replace(src, dst)

    monkeypatch.setattr(os, "replace", recording_replace)
    old_umask = os.umask(0o022)
    try:
        storage = FileProfileStorage(tmp_path / "profile")
        storage.set(PKCE_VERIFIER_KEY, "v1")
        storage.set(SESSION_TOKEN_KEY, "{}")
    finally:
        os.umask(old_umask)

    assert modes == [0o600, 0o600]
    assert stat.S_IMODE(storage.path.stat().st_mode) == 0o600
    assert stat.S_IMODE(storage.profile_dir.stat().st_mode) == 0o700


def test_file_storage_replaces_leftover_temp_file(tmp_path):
    storage = FileProfileStorage(tmp_path)
    leftover = storage.path.with_suffix(".tmp")
    leftover.write_text("stale")
    storage.set(PKCE_VERIFIER_KEY, "v3")
    assert storage.get(PKCE_VERIFIER_KEY) == "v3"
    assert not leftover.exists()
