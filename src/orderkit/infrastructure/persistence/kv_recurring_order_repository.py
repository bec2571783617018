"""Key-value-store-backed implementation of RecurringOrderRepository."""

from __future__ import annotations

from orderkit.domain.exceptions import PersistenceError, ValidationError
from orderkit.domain.model.recurring_order import RecurringOrderDefinition
from orderkit.domain.repository.key_value_store import KeyValueStore
from orderkit.domain.repository.recurring_order_repository import (
    RecurringOrderRepository,
)
from orderkit.infrastructure.persistence import serialization


class KeyValueRecurringOrderRepository(RecurringOrderRepository):

    def __init__(self, store: KeyValueStore, key: str = "@recurring_orders") -> None:
        self._store = store
        self._key = key

    # --- RecurringOrderRepository interface -----------------------------------

    def load_all(self) -> list[RecurringOrderDefinition]:
        data = self._store.get(self._key)
        if data is None:
            return []
        records = serialization.loads(data)
        if not isinstance(records, list):
            raise PersistenceError("Stored recurring orders are not a list")
        try:
            return [serialization.definition_to_domain(raw) for raw in records]
        except (
            KeyError, TypeError, ValueError, AttributeError, ArithmeticError, ValidationError
        ) as exc:
            raise PersistenceError(
                f"Stored recurring orders are malformed: {exc!r}"
            ) from exc

    def save_all(self, definitions: list[RecurringOrderDefinition]) -> None:
        records = [serialization.definition_to_raw(d) for d in definitions]
        self._store.set(self._key, serialization.dumps(records))
