"""User identity persistence.

A profile record (``userId``, ``name``, ``age``) lives under one fixed key and
a bare fallback identifier under a second key, mirroring what the browser
client keeps in local storage. ``LocalIdentityStore`` keeps both in a JSON
file; ``MemoryIdentityStore`` is used where nothing can be persisted.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from .config import get_storage_path
from .core import UserInfo, new_id

logger = logging.getLogger(__name__)

PROFILE_KEY = "copiloto_academico_user"
USER_ID_KEY = "copiloto_userId"


class IdentityProvider(ABC):
    """Key/value backed identity store.

    Subclasses only supply raw key access; profile validation and id
    generation live here.
    """

    name: str  # "local", "memory"

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def load(self) -> UserInfo | None:
        """Return the saved profile, or None if absent or incomplete."""
        raw = self.get_item(PROFILE_KEY)
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable profile record")
            return None

        if not isinstance(data, dict):
            return None
        user_id, name, age = data.get("userId"), data.get("name"), data.get("age")
        if not user_id or not name or not age:
            return None
        if not isinstance(age, int) or isinstance(age, bool):
            return None

        return UserInfo(user_id=str(user_id), name=str(name), age=age)

    def user_id(self) -> str:
        """Return a stable identifier, generating and storing one if needed."""
        profile = self.load()
        if profile:
            return profile.user_id

        user_id = self.get_item(USER_ID_KEY)
        if not user_id:
            user_id = new_id()
            self.set_item(USER_ID_KEY, user_id)
        return user_id

    def identity(self) -> UserInfo:
        """Return the profile, or an anonymous identity carrying ``user_id()``."""
        return self.load() or UserInfo(user_id=self.user_id())

    def save(self, name: str, age: int) -> UserInfo:
        name = name.strip()
        if not name:
            raise ValueError("name must not be empty")
        if age <= 0:
            raise ValueError("age must be a positive integer")

        info = UserInfo(user_id=self.user_id(), name=name, age=age)
        self.set_item(PROFILE_KEY, json.dumps(info.to_payload()))
        return info

    def clear(self) -> None:
        self.remove_item(PROFILE_KEY)


class MemoryIdentityStore(IdentityProvider):
    """In-process store; nothing survives a restart."""

    name = "memory"

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class LocalIdentityStore(IdentityProvider):
    """Persists keys in a small JSON object file."""

    name = "local"

    def __init__(self, path: Path | None = None):
        self.path = path or get_storage_path()

    def is_available(self) -> bool:
        """Return True if the storage directory exists or can be created and written."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.path.parent, os.W_OK)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def get_identity_provider() -> IdentityProvider:
    """Return the file-backed store when usable, else an in-memory one."""
    store = LocalIdentityStore()
    if store.is_available():
        return store
    logger.warning("Storage at %s is not writable; identity will not persist", store.path)
    return MemoryIdentityStore()
