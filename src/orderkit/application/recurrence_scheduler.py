"""Application service: Recurrence Scheduler.

Maintains the collection of recurring-order definitions and exposes
when each one is next due. It never places an order itself; an external
executor polls ``upcoming()`` and reports back via ``record_execution()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from orderkit.application.persistence import PersistenceWriter
from orderkit.domain.exceptions import EntityNotFoundError, PersistenceError, ValidationError
from orderkit.domain.model.recurrence import RecurrenceConfig
from orderkit.domain.model.recurring_order import OrderSnapshot, RecurringOrderDefinition
from orderkit.domain.model.value_objects import Money
from orderkit.domain.repository.recurring_order_repository import (
    RecurringOrderRepository,
)

logger = logging.getLogger(__name__)

RECURRING_ORDERS_KEY = "@recurring_orders"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RecurrenceStats:
    active_count: int
    total_count: int
    total_executions: int
    # currency code -> executed value in that currency
    total_value_executed: dict[str, Money]


class RecurrenceScheduler:

    def __init__(
        self,
        recurring_repo: RecurringOrderRepository,
        writer: PersistenceWriter,
        clock: Clock = utc_now,
    ) -> None:
        self._recurring_repo = recurring_repo
        self._writer = writer
        self._clock = clock
        self._definitions = self._load()

    # --- Queries --------------------------------------------------------------

    @property
    def definitions(self) -> list[RecurringOrderDefinition]:
        return list(self._definitions)

    def get(self, definition_id: str) -> RecurringOrderDefinition:
        return self._definitions[self._index_of(definition_id)]

    def upcoming(self, within_hours: float = 24) -> list[RecurringOrderDefinition]:
        """Active definitions due within the next ``within_hours``, soonest first."""
        cutoff = self._clock() + timedelta(hours=within_hours)
        due = [d for d in self._definitions if d.is_due_by(cutoff)]
        return sorted(due, key=lambda d: d.next_execution_at)

    def stats(self) -> RecurrenceStats:
        """Counts plus executed value, summed separately for each currency."""
        totals: dict[str, Money] = {}
        for definition in self._definitions:
            value = definition.value_executed
            previous = totals.get(value.currency, Money.zero(value.currency))
            totals[value.currency] = previous + value
        return RecurrenceStats(
            active_count=sum(1 for d in self._definitions if d.is_active),
            total_count=len(self._definitions),
            total_executions=sum(d.execution_count for d in self._definitions),
            total_value_executed=totals,
        )

    # --- Commands -------------------------------------------------------------

    def create_definition(
        self, snapshot: OrderSnapshot, config: RecurrenceConfig
    ) -> str:
        """Register a new active definition and return its id."""
        definition = RecurringOrderDefinition.create(snapshot, config, self._clock())
        self._commit(self._definitions + [definition])
        logger.info(
            "Recurring order %s created (%s), next run %s",
            definition.definition_id,
            config.frequency.value,
            definition.next_execution_at,
        )
        return definition.definition_id

    def update_config(self, definition_id: str, config: RecurrenceConfig) -> None:
        index = self._index_of(definition_id)
        updated = self._definitions[index].with_config(config, self._clock())
        self._replace(index, updated)

    def toggle_active(self, definition_id: str) -> bool:
        """Pause or resume a definition; returns the new ``is_active``."""
        index = self._index_of(definition_id)
        updated = self._definitions[index].toggled(self._clock())
        self._replace(index, updated)
        logger.info(
            "Recurring order %s %s",
            definition_id,
            "resumed" if updated.is_active else "paused",
        )
        return updated.is_active

    def delete_definition(self, definition_id: str) -> None:
        index = self._index_of(definition_id)
        remaining = self._definitions[:index] + self._definitions[index + 1:]
        self._commit(remaining)
        logger.info("Recurring order %s deleted", definition_id)

    def record_execution(
        self, definition_id: str, executed_at: datetime | None = None
    ) -> RecurringOrderDefinition:
        """Bookkeeping hook for the external executor after it fires a definition."""
        index = self._index_of(definition_id)
        when = executed_at if executed_at is not None else self._clock()
        updated = self._definitions[index].with_execution(when)
        self._replace(index, updated)
        return updated

    # --- Internal helpers -----------------------------------------------------

    def _index_of(self, definition_id: str) -> int:
        for i, definition in enumerate(self._definitions):
            if definition.definition_id == definition_id:
                return i
        raise EntityNotFoundError(f"Recurring order '{definition_id}' not found")

    def _replace(self, index: int, definition: RecurringOrderDefinition) -> None:
        definitions = list(self._definitions)
        definitions[index] = definition
        self._commit(definitions)

    def _commit(self, definitions: list[RecurringOrderDefinition]) -> None:
        self._definitions = definitions
        frozen = list(definitions)
        self._writer.submit(
            RECURRING_ORDERS_KEY, lambda: self._recurring_repo.save_all(frozen)
        )

    def _load(self) -> list[RecurringOrderDefinition]:
        try:
            definitions = self._recurring_repo.load_all()
        except (PersistenceError, ValidationError) as exc:
            logger.warning("Could not restore recurring orders, starting empty: %s", exc)
            return []
        logger.debug("Restored %d recurring order(s)", len(definitions))
        return list(definitions)
