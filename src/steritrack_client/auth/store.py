"""Durable storage for the access and renewal credentials."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ACCESS_TOKEN = "access_token"
REFRESH_TOKEN = "refresh_token"
AUTH_USER = "auth_user"

SESSION_KEYS = (ACCESS_TOKEN, REFRESH_TOKEN, AUTH_USER)

# Entries written by earlier releases, mapped to their current names.
LEGACY_KEYS = {"token": ACCESS_TOKEN, "user": AUTH_USER}


class CredentialStore(ABC):
    """Process-wide key/value storage for session credentials.

    Values are opaque to this layer. Setting an entry to ``None`` erases it.
    """

    @abstractmethod
    def get(self, kind: str) -> Any | None:
        """Return the stored value for ``kind`` or ``None``."""

    @abstractmethod
    def update(self, entries: Mapping[str, Any | None]) -> None:
        """Write several entries in one step; ``None`` values erase."""

    def set(self, kind: str, value: Any | None) -> None:
        self.update({kind: value})

    def clear(self) -> None:
        """Erase every session entry together."""
        self.update({key: None for key in SESSION_KEYS})

    @property
    def access_token(self) -> str | None:
        return self.get(ACCESS_TOKEN)

    @property
    def refresh_token(self) -> str | None:
        return self.get(REFRESH_TOKEN)


def _apply(entries: dict[str, Any], changes: Mapping[str, Any | None]) -> None:
    for key, value in changes.items():
        if value is None:
            entries.pop(key, None)
        else:
            entries[key] = value


def _migrate_legacy(entries: dict[str, Any]) -> bool:
    changed = False
    for legacy, current in LEGACY_KEYS.items():
        if legacy not in entries:
            continue
        value = entries.pop(legacy)
        if current not in entries:
            entries[current] = value
        changed = True
    return changed


class MemoryCredentialStore(CredentialStore):
    """Keep credentials in process memory only."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, Any] = dict(initial or {})
        _migrate_legacy(self._entries)

    def get(self, kind: str) -> Any | None:
        with self._lock:
            return self._entries.get(kind)

    def update(self, entries: Mapping[str, Any | None]) -> None:
        with self._lock:
            _apply(self._entries, entries)


class FileCredentialStore(CredentialStore):
    """Persist credentials as a JSON document on disk.

    Every read loads the file again so that writes made by another process
    are observed. Writes go through a temporary sibling and ``os.replace``
    so a reader never sees a partially written document.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        with self._lock:
            entries = self._load()
            if _migrate_legacy(entries):
                logger.info("Migrated legacy credential entries in %s", self.path)
                self._dump(entries)

    def get(self, kind: str) -> Any | None:
        with self._lock:
            return self._load().get(kind)

    def update(self, entries: Mapping[str, Any | None]) -> None:
        with self._lock:
            current = self._load()
            _apply(current, entries)
            self._dump(current)

    def _load(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("Unable to read credential file %s: %s", self.path, exc)
            return {}
        try:
            payload = json.loads(raw) if raw.strip() else {}
        except ValueError:
            logger.warning("Ignoring malformed credential file %s", self.path)
            return {}
        return dict(payload) if isinstance(payload, Mapping) else {}

    def _dump(self, entries: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".credentials-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(dict(entries), handle, indent=2, sort_keys=True)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
