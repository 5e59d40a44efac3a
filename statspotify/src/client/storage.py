"""Profile storage: the client-local key/value store that plays the role of browser localStorage."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Dict, Optional

PKCE_VERIFIER_KEY = "pkce_verifier"
SESSION_TOKEN_KEY = "spotify_token"


class ProfileStorage:
    """String key/value store scoped to one client profile. Each set() replaces the whole value."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryProfileStorage(ProfileStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileProfileStorage(ProfileStorage):
    """JSON file in the profile directory, readable only by the owner."""

    def __init__(self, profile_dir: Path):
        self.profile_dir = Path(profile_dir)
        self.path = self.profile_dir / "storage.json"

    def _load(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.profile_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        # O_CREAT only applies the mode to a new file, so never reuse a leftover one
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, stat.S_IRUSR | stat.S_IWUSR)
        with os.fdopen(fd, "w") as fh:
            json.dump(data, fh, indent=2)
        # Single atomic replace so readers never see a half-written value
        os.replace(tmp, self.path)

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
