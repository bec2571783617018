"""RecurringOrderDefinition aggregate.

A definition freezes a copy of a past order and pairs it with a
recurrence rule plus execution bookkeeping. The core only computes *when*
a definition is next due; firing it belongs to an external executor.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime

from orderkit.domain.exceptions import EmptyCartError
from orderkit.domain.model.cart import CartLineItem, CartState
from orderkit.domain.model.product import MerchantRef
from orderkit.domain.model.recurrence import RecurrenceConfig, compute_next_execution
from orderkit.domain.model.value_objects import Money


@dataclass(frozen=True)
class OrderSnapshot:
    """Immutable copy of cart contents and totals taken at checkout."""

    items: tuple[CartLineItem, ...]
    merchant: MerchantRef
    total: Money
    delivery_address_ref: str | None = None
    payment_method_ref: str | None = None

    @staticmethod
    def of(
        cart: CartState,
        delivery_address_ref: str | None = None,
        payment_method_ref: str | None = None,
    ) -> OrderSnapshot:
        if cart.merchant is None:
            raise EmptyCartError("Cannot snapshot an empty cart")
        return OrderSnapshot(
            items=cart.items,
            merchant=cart.merchant,
            total=cart.total,
            delivery_address_ref=delivery_address_ref,
            payment_method_ref=payment_method_ref,
        )


def new_definition_id() -> str:
    return f"recurring_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class RecurringOrderDefinition:
    """Aggregate root for a recurring order.

    Use ``RecurringOrderDefinition.create()`` for new definitions. Every
    ``with_*`` method returns a complete record; ``next_execution_at`` is
    None exactly when the definition is inactive.
    """

    definition_id: str
    snapshot: OrderSnapshot
    config: RecurrenceConfig
    created_at: datetime
    is_active: bool = True
    execution_count: int = 0
    last_executed_at: datetime | None = None
    next_execution_at: datetime | None = None

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        snapshot: OrderSnapshot,
        config: RecurrenceConfig,
        now: datetime,
        definition_id: str | None = None,
    ) -> RecurringOrderDefinition:
        return RecurringOrderDefinition(
            definition_id=definition_id or new_definition_id(),
            snapshot=snapshot,
            config=config,
            created_at=now,
            next_execution_at=compute_next_execution(config, now),
        )

    # --- Typed updates --------------------------------------------------------

    def with_config(self, config: RecurrenceConfig, now: datetime) -> RecurringOrderDefinition:
        next_at = compute_next_execution(config, now) if self.is_active else None
        return replace(self, config=config, next_execution_at=next_at)

    def toggled(self, now: datetime) -> RecurringOrderDefinition:
        """Pause an active definition or resume a paused one.

        Resuming schedules from ``now``, not from the creation time.
        """
        if self.is_active:
            return replace(self, is_active=False, next_execution_at=None)
        return replace(
            self,
            is_active=True,
            next_execution_at=compute_next_execution(self.config, now),
        )

    def with_execution(self, executed_at: datetime) -> RecurringOrderDefinition:
        """Bookkeeping applied by the external executor after firing."""
        next_at = (
            compute_next_execution(self.config, executed_at)
            if self.is_active
            else None
        )
        return replace(
            self,
            execution_count=self.execution_count + 1,
            last_executed_at=executed_at,
            next_execution_at=next_at,
        )

    # --- Computed properties --------------------------------------------------

    @property
    def value_executed(self) -> Money:
        return self.snapshot.total * self.execution_count

    def is_due_by(self, cutoff: datetime) -> bool:
        return (
            self.is_active
            and self.next_execution_at is not None
            and self.next_execution_at <= cutoff
        )
