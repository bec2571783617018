"""Local stand-in for the remote order-placement service.

Assigns an order id and appends a summary of the placed order to the
``@orders`` key of the store, the way the mobile app keeps its order
history on the device.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from orderkit.domain.exceptions import PersistenceError
from orderkit.domain.model.recurring_order import OrderSnapshot
from orderkit.domain.repository.key_value_store import KeyValueStore
from orderkit.domain.repository.order_placer import OrderPlacer
from orderkit.infrastructure.persistence import serialization

logger = logging.getLogger(__name__)

ORDERS_KEY = "@orders"


class LocalOrderPlacer(OrderPlacer):

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def place(self, snapshot: OrderSnapshot) -> str:
        order_id = f"order_{uuid.uuid4().hex}"
        record = {
            "id": order_id,
            "status": "confirmed",
            "order_date": datetime.now(timezone.utc).isoformat(),
            **serialization.snapshot_to_raw(snapshot),
        }

        history = self.history()
        history.insert(0, record)
        self._store.set(ORDERS_KEY, serialization.dumps(history))
        return order_id

    def history(self) -> list[dict]:
        """Previously placed orders, newest first."""
        try:
            data = self._store.get(ORDERS_KEY)
            records = serialization.loads(data) if data is not None else []
        except PersistenceError as exc:
            logger.warning("Order history unreadable, starting a new one: %s", exc)
            return []
        return records if isinstance(records, list) else []
