"""Concrete PersistenceWriter implementations.

``ImmediatePersistenceWriter`` runs each save inline, which suits the
CLI and tests. ``BackgroundPersistenceWriter`` is the fire-and-forget
variant: a single daemon thread drains pending saves, keeping only the
most recent save per key, so a burst of mutations costs at most one
redundant write and never a torn one.
"""

from __future__ import annotations

import logging
import threading

from orderkit.application.persistence import (
    OutcomeListener,
    PersistenceWriter,
    SaveAction,
)

logger = logging.getLogger(__name__)


class ImmediatePersistenceWriter(PersistenceWriter):

    def submit(self, key: str, save: SaveAction) -> None:
        self._execute(key, save)


class BackgroundPersistenceWriter(PersistenceWriter):

    def __init__(self, listener: OutcomeListener | None = None) -> None:
        super().__init__(listener)
        self._pending: dict[str, SaveAction] = {}
        self._condition = threading.Condition()
        self._busy = False
        self._closed = False
        self._thread = threading.Thread(
            target=self._run, name="orderkit-persistence", daemon=True
        )
        self._thread.start()

    def submit(self, key: str, save: SaveAction) -> None:
        with self._condition:
            if self._closed:
                logger.warning("Writer closed, dropping write for %s", key)
                return
            # Newer snapshot for the same key supersedes the queued one.
            self._pending[key] = save
            self._condition.notify_all()

    def flush(self, timeout: float | None = None) -> bool:
        with self._condition:
            return self._condition.wait_for(
                lambda: not self._pending and not self._busy, timeout
            )

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()
        self._thread.join()

    def _run(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._pending or self._closed)
                if not self._pending:
                    return
                key = next(iter(self._pending))
                save = self._pending.pop(key)
                self._busy = True
            try:
                self._execute(key, save)
            except Exception:
                # Anything other than PersistenceError is a bug in a save
                # action; keep the worker alive for the other keys.
                logger.exception("Unexpected error while persisting %s", key)
            finally:
                with self._condition:
                    self._busy = False
                    self._condition.notify_all()
