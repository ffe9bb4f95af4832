"""
Key/value persistence providers for ledger collections.

Each key holds one JSON blob (a whole collection). Reads return ``None`` when
the key is absent or the blob cannot be parsed; callers fall back to seed
data in that case. Writes replace the whole blob (last writer wins).
"""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

_VALID_KEY = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _check_key(key: str) -> str:
    if not _VALID_KEY.match(key):
        raise ValueError(f"Invalid store key: {key!r}")
    return key


class KeyValueStore(ABC):
    """Load/save JSON-compatible values by key."""

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or unreadable."""

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if something was removed."""


class MemoryStore(KeyValueStore):
    """In-process store. Values are kept as JSON text so reads never alias writes."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._blobs: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str) -> Optional[Any]:
        blob = self._blobs.get(_check_key(key))
        if blob is None:
            return None
        try:
            return json.loads(blob)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored value for '{key}' is not valid JSON: {e}")
            return None

    def save(self, key: str, value: Any) -> None:
        self._blobs[_check_key(key)] = json.dumps(value)

    def save_raw(self, key: str, blob: str) -> None:
        """Store a raw string as-is (used to simulate corrupt data)."""
        self._blobs[_check_key(key)] = blob

    def delete(self, key: str) -> bool:
        return self._blobs.pop(_check_key(key), None) is not None

    def keys(self) -> list[str]:
        return list(self._blobs)


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key in a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        # Write to a temp file and rename so a crash never leaves half a blob
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved '{key}' to {path}")

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True
