"""File-backed implementation of KeyValueStore.

Each key maps to one file in the data directory. Writes go to a temp
file first and are then renamed over the target, so a reader never sees
a half-written payload.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from orderkit.domain.exceptions import PersistenceError
from orderkit.domain.repository.key_value_store import KeyValueStore

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


class FileKeyValueStore(KeyValueStore):

    def __init__(self, directory: Path, suffix: str = ".json") -> None:
        self._directory = Path(directory)
        self._suffix = suffix

    # --- KeyValueStore interface ----------------------------------------------

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc

    def set(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            self._ensure_dir()
            fd, tmp = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc

    # --- File helpers ---------------------------------------------------------

    def path_for(self, key: str) -> Path:
        name = _UNSAFE.sub("_", key.lstrip("@")) or "default"
        return self._directory / f"{name}{self._suffix}"

    def _ensure_dir(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
