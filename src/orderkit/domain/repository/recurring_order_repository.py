"""Abstract repository for the RecurringOrderDefinition collection.

The collection is always loaded and saved as a whole.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderkit.domain.model.recurring_order import RecurringOrderDefinition


class RecurringOrderRepository(ABC):

    @abstractmethod
    def load_all(self) -> list[RecurringOrderDefinition]:
        """Return every persisted definition (empty if nothing was saved)."""

    @abstractmethod
    def save_all(self, definitions: list[RecurringOrderDefinition]) -> None:
        """Persist the complete collection, replacing the previous copy."""
