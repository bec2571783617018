"""Persistence side-channel used by the engines.

Engines never write to storage themselves. After each successful
mutation they hand the writer a key and a callable that saves an
already-frozen snapshot. The writer decides when to run it and reports
the outcome as a ``PersistOutcome`` instead of raising, so a durability
failure never undoes or hides an in-memory change.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from orderkit.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SaveAction = Callable[[], None]
OutcomeListener = Callable[["PersistOutcome"], None]


@dataclass(frozen=True)
class PersistOutcome:
    key: str
    succeeded: bool
    error: PersistenceError | None = None


class PersistenceWriter(ABC):

    def __init__(self, listener: OutcomeListener | None = None) -> None:
        self._listener = listener

    @abstractmethod
    def submit(self, key: str, save: SaveAction) -> None:
        """Schedule ``save`` for ``key``; never raises PersistenceError."""

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for scheduled writes to finish. True when nothing is pending."""
        return True

    def close(self) -> None:
        """Finish pending writes and release resources."""

    def _execute(self, key: str, save: SaveAction) -> PersistOutcome:
        try:
            save()
        except PersistenceError as exc:
            logger.error("Failed to persist %s: %s", key, exc)
            outcome = PersistOutcome(key=key, succeeded=False, error=exc)
        else:
            logger.debug("Persisted %s", key)
            outcome = PersistOutcome(key=key, succeeded=True)

        if self._listener is not None:
            self._listener(outcome)
        return outcome
