"""
Per-device state: active store, security PIN, biometrics flag and the
store snapshot used when the backend cannot be reached.

DeviceSession is constructed with a storage backend and passed to the
components that need it; nothing reads ambient global state.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import bcrypt

logger = logging.getLogger(__name__)

MIN_PIN_LENGTH = 4


class PinValidationError(ValueError):
    pass


class MemoryDeviceStorage:
    """Dict-backed storage; state lives as long as the object."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileDeviceStorage:
    """
    Storage persisted to a single JSON file.

    The file is rewritten through a temp file and os.replace, so a crash
    mid-write leaves the previous state intact. A missing or corrupt file
    reads as empty.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Device state at %s is unreadable; starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, sort_keys=True)
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class DeviceSession:
    ACTIVE_STORE_KEY = "active_store_id"
    PIN_HASH_KEY = "pin_hash"
    BIOMETRICS_KEY = "biometrics_enrolled"
    SNAPSHOT_PREFIX = "stores_snapshot:"

    def __init__(self, storage=None):
        self.storage = storage if storage is not None else MemoryDeviceStorage()

    # active store

    @property
    def active_store_id(self) -> Optional[str]:
        value = self.storage.get(self.ACTIVE_STORE_KEY)
        return value or None

    def set_active_store(self, store_id: Optional[str]) -> None:
        if store_id:
            self.storage.set(self.ACTIVE_STORE_KEY, store_id)
        else:
            self.storage.delete(self.ACTIVE_STORE_KEY)

    def clear_active_store(self) -> None:
        self.storage.delete(self.ACTIVE_STORE_KEY)

    # PIN

    @property
    def has_pin(self) -> bool:
        return bool(self.storage.get(self.PIN_HASH_KEY))

    def set_pin(self, pin: str) -> None:
        if not isinstance(pin, str) or not pin.isdigit():
            raise PinValidationError("PIN must contain digits only")
        if len(pin) < MIN_PIN_LENGTH:
            raise PinValidationError(f"PIN must be at least {MIN_PIN_LENGTH} digits")
        hashed = bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt())
        self.storage.set(self.PIN_HASH_KEY, hashed.decode("utf-8"))

    def verify_pin(self, pin: str) -> bool:
        stored = self.storage.get(self.PIN_HASH_KEY)
        if not stored or not isinstance(pin, str):
            return False
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            return False

    def clear_pin(self) -> None:
        self.storage.delete(self.PIN_HASH_KEY)
        self.storage.delete(self.BIOMETRICS_KEY)

    # biometrics

    @property
    def biometrics_enrolled(self) -> bool:
        return bool(self.storage.get(self.BIOMETRICS_KEY, False))

    @biometrics_enrolled.setter
    def biometrics_enrolled(self, value: bool) -> None:
        self.storage.set(self.BIOMETRICS_KEY, bool(value))

    # store snapshot

    def _snapshot_key(self, user_id: str) -> str:
        return f"{self.SNAPSHOT_PREFIX}{user_id}"

    def load_snapshot(self, user_id: str) -> List[Dict[str, Any]]:
        if not user_id:
            return []
        rows = self.storage.get(self._snapshot_key(user_id))
        return list(rows) if isinstance(rows, list) else []

    def save_snapshot(self, user_id: str, rows: List[Dict[str, Any]]) -> bool:
        """Replace the user's snapshot. An empty list never replaces a saved one."""
        if not user_id or not rows:
            return False
        self.storage.set(self._snapshot_key(user_id), list(rows))
        return True

    def clear_snapshot(self, user_id: str) -> None:
        if user_id:
            self.storage.delete(self._snapshot_key(user_id))
