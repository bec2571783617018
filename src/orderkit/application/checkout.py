"""Application service: Checkout use case.

Orchestrates the Cart Engine, the order-placement collaborator and the
Recurrence Scheduler:

1. Freeze the cart into an ``OrderSnapshot``.
2. Place a one-time order with that snapshot.
3. Optionally register a recurring definition from the *same* snapshot.
4. Clear the cart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from orderkit.application.cart_engine import CartEngine
from orderkit.application.recurrence_scheduler import RecurrenceScheduler
from orderkit.domain.exceptions import EmptyCartError
from orderkit.domain.model.recurrence import RecurrenceConfig
from orderkit.domain.model.recurring_order import OrderSnapshot
from orderkit.domain.repository.order_placer import OrderPlacer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    snapshot: OrderSnapshot
    recurring_id: str | None = None


class CheckoutHandler:

    def __init__(
        self,
        engine: CartEngine,
        scheduler: RecurrenceScheduler,
        order_placer: OrderPlacer,
    ) -> None:
        self._engine = engine
        self._scheduler = scheduler
        self._order_placer = order_placer

    def handle(
        self,
        delivery_address_ref: str | None = None,
        payment_method_ref: str | None = None,
        recurrence: RecurrenceConfig | None = None,
    ) -> CheckoutResult:
        if self._engine.state.is_empty:
            raise EmptyCartError("Cannot check out an empty cart")

        snapshot = self._engine.snapshot(delivery_address_ref, payment_method_ref)
        order_id = self._order_placer.place(snapshot)
        logger.info("Placed order %s for %s", order_id, snapshot.total)

        recurring_id = None
        if recurrence is not None:
            recurring_id = self._scheduler.create_definition(snapshot, recurrence)

        self._engine.clear_cart()
        return CheckoutResult(
            order_id=order_id, snapshot=snapshot, recurring_id=recurring_id
        )
