"""Abstract key-value byte store.

The device store behind the cart and recurring orders (a file, a local
database, a synced blob) is irrelevant to the domain; it only needs to
get and set whole payloads by key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the payload stored under ``key``, or None.

        Raises PersistenceError if the store cannot be read.
        """

    @abstractmethod
    def set(self, key: str, data: bytes) -> None:
        """Replace the payload stored under ``key``.

        Raises PersistenceError if the write is rejected.
        """
