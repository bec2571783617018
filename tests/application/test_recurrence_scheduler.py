"""Integration tests for the RecurrenceScheduler."""

import logging
from datetime import datetime, timezone

import pytest

from orderkit.domain.exceptions import EntityNotFoundError
from orderkit.domain.model.cart import CartState
from orderkit.domain.model.product import ProductRef
from orderkit.domain.model.recurrence import (
    CustomRecurrence,
    DailyRecurrence,
    MonthlyRecurrence,
    WeeklyRecurrence,
)
from orderkit.domain.model.recurring_order import OrderSnapshot
from orderkit.domain.model.value_objects import Money
from tests.fakes import FakeClock, FakeKeyValueStore, OutcomeRecorder, make_product, make_scheduler

START = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


def _snapshot(price: str = "5000") -> OrderSnapshot:
    cart = CartState.empty().with_item_added(make_product(price=price))
    return OrderSnapshot.of(cart, "addr-1", "card-1")


def _setup(store: FakeKeyValueStore | None = None):
    clock = FakeClock(START)
    store = store if store is not None else FakeKeyValueStore()
    return make_scheduler(clock, store), clock, store


class TestCreate:

    def test_create_schedules_from_now(self):
        scheduler, _, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), CustomRecurrence(12, 0, 3))
        d = scheduler.get(definition_id)
        assert d.is_active
        assert d.execution_count == 0
        assert d.created_at == START
        assert d.next_execution_at == datetime(2025, 1, 4, 12, 0, tzinfo=timezone.utc)

    def test_snapshot_is_kept_by_value(self):
        scheduler, _, _ = _setup()
        snapshot = _snapshot("1234")
        definition_id = scheduler.create_definition(snapshot, DailyRecurrence(9, 0))
        assert scheduler.get(definition_id).snapshot == snapshot
        assert scheduler.get(definition_id).snapshot.total == Money.of("1234")

    def test_create_appends(self):
        scheduler, _, _ = _setup()
        a = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        b = scheduler.create_definition(_snapshot(), DailyRecurrence(10, 0))
        assert [d.definition_id for d in scheduler.definitions] == [a, b]


class TestToggle:

    def test_toggle_off_clears_schedule(self):
        scheduler, _, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        assert scheduler.toggle_active(definition_id) is False
        d = scheduler.get(definition_id)
        assert not d.is_active
        assert d.next_execution_at is None

    def test_toggle_on_recomputes_from_current_time(self):
        scheduler, clock, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        scheduler.toggle_active(definition_id)

        clock.now = datetime(2025, 3, 5, 10, 0, tzinfo=timezone.utc)
        assert scheduler.toggle_active(definition_id) is True
        d = scheduler.get(definition_id)
        assert d.next_execution_at == datetime(2025, 3, 6, 9, 0, tzinfo=timezone.utc)

    def test_toggle_unknown(self):
        scheduler, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            scheduler.toggle_active("nope")


class TestUpdateConfig:

    def test_update_recomputes_for_active(self):
        scheduler, clock, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        clock.advance(days=10)
        scheduler.update_config(definition_id, MonthlyRecurrence(9, 0))
        d = scheduler.get(definition_id)
        assert d.config == MonthlyRecurrence(9, 0)
        assert d.next_execution_at == datetime(2025, 2, 11, 9, 0, tzinfo=timezone.utc)

    def test_update_keeps_paused_unscheduled(self):
        scheduler, _, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        scheduler.toggle_active(definition_id)
        scheduler.update_config(definition_id, WeeklyRecurrence(9, 0, frozenset({1})))
        assert scheduler.get(definition_id).next_execution_at is None

    def test_update_unknown(self):
        scheduler, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            scheduler.update_config("nope", DailyRecurrence(9, 0))


class TestDelete:

    def test_delete(self):
        scheduler, _, _ = _setup()
        a = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        b = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        scheduler.delete_definition(a)
        assert [d.definition_id for d in scheduler.definitions] == [b]
        with pytest.raises(EntityNotFoundError):
            scheduler.get(a)

    def test_delete_unknown_changes_nothing(self):
        scheduler, _, store = _setup()
        scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        writes = len(store.writes)
        with pytest.raises(EntityNotFoundError):
            scheduler.delete_definition("nope")
        assert len(scheduler.definitions) == 1
        assert len(store.writes) == writes


class TestUpcoming:

    def test_window_filter(self):
        scheduler, _, _ = _setup()
        # 08:00 now, daily at 10:00 -> due in 2h
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(10, 0))
        assert [d.definition_id for d in scheduler.upcoming(24)] == [definition_id]
        assert scheduler.upcoming(1) == []

    def test_sorted_soonest_first_and_skips_paused(self):
        scheduler, _, _ = _setup()
        late = scheduler.create_definition(_snapshot(), DailyRecurrence(20, 0))
        early = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        paused = scheduler.create_definition(_snapshot(), DailyRecurrence(12, 0))
        scheduler.toggle_active(paused)
        assert [d.definition_id for d in scheduler.upcoming(24)] == [early, late]


class TestExecutionAndStats:

    def test_record_execution(self):
        scheduler, clock, _ = _setup()
        definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))
        clock.now = datetime(2025, 1, 1, 9, 0, 5, tzinfo=timezone.utc)
        d = scheduler.record_execution(definition_id)
        assert d.execution_count == 1
        assert d.last_executed_at == clock.now
        assert d.next_execution_at == datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)

    def test_stats(self):
        scheduler, _, _ = _setup()
        a = scheduler.create_definition(_snapshot("5000"), DailyRecurrence(9, 0))
        b = scheduler.create_definition(_snapshot("1500.50"), DailyRecurrence(9, 0))
        scheduler.record_execution(a)
        scheduler.record_execution(a)
        scheduler.record_execution(b)
        scheduler.toggle_active(b)

        stats = scheduler.stats()
        assert stats.active_count == 1
        assert stats.total_count == 2
        assert stats.total_executions == 3
        assert stats.total_value_executed == {"CRC": Money.of("11500.50")}

    def test_stats_when_empty(self):
        scheduler, _, _ = _setup()
        stats = scheduler.stats()
        assert stats.total_count == 0
        assert stats.total_value_executed == {}

    def test_stats_keeps_currencies_apart(self):
        scheduler, _, _ = _setup()
        colones = scheduler.create_definition(_snapshot("5000"), DailyRecurrence(9, 0))
        cart = CartState.empty().with_item_added(
            ProductRef("p1", "Casado", Money.of("12", "USD"), "m1", "Soda Tica")
        )
        dollars = scheduler.create_definition(OrderSnapshot.of(cart), DailyRecurrence(9, 0))
        scheduler.record_execution(colones)
        scheduler.record_execution(dollars)
        scheduler.record_execution(dollars)

        stats = scheduler.stats()
        assert stats.total_executions == 3
        assert stats.total_value_executed == {
            "CRC": Money.of("5000"),
            "USD": Money.of("24", "USD"),
        }


class TestPersistence:

    def test_collection_survives_restart(self):
        scheduler, clock, store = _setup()
        a = scheduler.create_definition(_snapshot(), WeeklyRecurrence(9, 30, frozenset({1, 5})))
        scheduler.create_definition(_snapshot(), CustomRecurrence(12, 0, 3))
        scheduler.record_execution(a)
        scheduler.toggle_active(a)

        restored = make_scheduler(clock, store)
        assert restored.definitions == scheduler.definitions

    def test_write_failure_is_reported_not_raised(self, caplog):
        store = FakeKeyValueStore()
        store.fail_set = True
        recorder = OutcomeRecorder()
        scheduler = make_scheduler(FakeClock(START), store, recorder)

        with caplog.at_level(logging.ERROR):
            definition_id = scheduler.create_definition(_snapshot(), DailyRecurrence(9, 0))

        assert scheduler.get(definition_id).is_active
        assert len(recorder.outcomes) == 1
        assert recorder.outcomes[0].succeeded is False
        assert "Failed to persist @recurring_orders" in caplog.text

    def test_corrupt_payload_starts_empty(self, caplog):
        store = FakeKeyValueStore({"@recurring_orders": b'[{"id": 1}]'})
        with caplog.at_level(logging.WARNING):
            scheduler = make_scheduler(FakeClock(START), store)
        assert scheduler.definitions == []
        assert "Could not restore recurring orders" in caplog.text
