"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from datetime import datetime

from orderkit.application.cart_engine import CartEngine
from orderkit.application.persistence import PersistenceWriter
from orderkit.application.recurrence_scheduler import RecurrenceScheduler
from orderkit.domain.repository.key_value_store import KeyValueStore
from orderkit.infrastructure.config import Settings, get_settings
from orderkit.infrastructure.local_order_placer import LocalOrderPlacer
from orderkit.infrastructure.persistence.file_store import FileKeyValueStore
from orderkit.infrastructure.persistence.kv_cart_repository import (
    KeyValueCartRepository,
)
from orderkit.infrastructure.persistence.kv_recurring_order_repository import (
    KeyValueRecurringOrderRepository,
)
from orderkit.infrastructure.persistence.writers import (
    BackgroundPersistenceWriter,
    ImmediatePersistenceWriter,
)


def key_value_store(settings: Settings | None = None) -> FileKeyValueStore:
    settings = settings or get_settings()
    return FileKeyValueStore(settings.data_dir)


def persistence_writer(settings: Settings | None = None) -> PersistenceWriter:
    settings = settings or get_settings()
    if settings.background_writes:
        return BackgroundPersistenceWriter()
    return ImmediatePersistenceWriter()


def cart_engine(
    store: KeyValueStore, writer: PersistenceWriter
) -> CartEngine:
    return CartEngine(KeyValueCartRepository(store), writer)


def recurrence_scheduler(
    store: KeyValueStore, writer: PersistenceWriter
) -> RecurrenceScheduler:
    return RecurrenceScheduler(
        KeyValueRecurringOrderRepository(store), writer, clock=local_now
    )


def order_placer(store: KeyValueStore) -> LocalOrderPlacer:
    return LocalOrderPlacer(store)


def local_now() -> datetime:
    """Timezone-aware current time in the machine's zone.

    Recurrence hours are wall-clock hours for the person ordering.
    """
    return datetime.now().astimezone()
