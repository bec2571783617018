"""Recurrence rules and next-run arithmetic.

A rule always fires at a fixed wall-clock ``hour:minute``; the four
variants only differ in how far ahead the next occurrence lands.
Weekdays use 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import ClassVar, Iterable, Union

from orderkit.domain.exceptions import InvalidRecurrenceError


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class _TimeOfDay:
    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not isinstance(self.hour, int) or not 0 <= self.hour <= 23:
            raise InvalidRecurrenceError(f"Hour must be 0-23, got {self.hour!r}")
        if not isinstance(self.minute, int) or not 0 <= self.minute <= 59:
            raise InvalidRecurrenceError(f"Minute must be 0-59, got {self.minute!r}")


@dataclass(frozen=True)
class DailyRecurrence(_TimeOfDay):
    frequency: ClassVar[Frequency] = Frequency.DAILY


@dataclass(frozen=True)
class WeeklyRecurrence(_TimeOfDay):
    frequency: ClassVar[Frequency] = Frequency.WEEKLY

    days_of_week: frozenset[int] = frozenset()

    def __post_init__(self) -> None:
        super().__post_init__()
        # Accept any iterable of ints from callers.
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))
        if not self.days_of_week:
            raise InvalidRecurrenceError("Select at least one day of the week")
        for day in self.days_of_week:
            if not isinstance(day, int) or not 0 <= day <= 6:
                raise InvalidRecurrenceError(f"Day of week must be 0-6, got {day!r}")


@dataclass(frozen=True)
class MonthlyRecurrence(_TimeOfDay):
    frequency: ClassVar[Frequency] = Frequency.MONTHLY


@dataclass(frozen=True)
class CustomRecurrence(_TimeOfDay):
    frequency: ClassVar[Frequency] = Frequency.CUSTOM

    interval_days: int = 7

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.interval_days, int) or self.interval_days < 1:
            raise InvalidRecurrenceError(
                f"Interval must be at least 1 day, got {self.interval_days!r}"
            )


RecurrenceConfig = Union[
    DailyRecurrence, WeeklyRecurrence, MonthlyRecurrence, CustomRecurrence
]


def build_recurrence(
    frequency: Frequency | str,
    hour: int,
    minute: int,
    days_of_week: Iterable[int] = (),
    interval_days: int | None = None,
) -> RecurrenceConfig:
    """Build the right variant from a flat description of the rule."""
    try:
        freq = Frequency(frequency)
    except ValueError as exc:
        raise InvalidRecurrenceError(f"Unknown frequency: {frequency!r}") from exc

    if freq is Frequency.DAILY:
        return DailyRecurrence(hour, minute)
    if freq is Frequency.WEEKLY:
        return WeeklyRecurrence(hour, minute, frozenset(days_of_week))
    if freq is Frequency.MONTHLY:
        return MonthlyRecurrence(hour, minute)
    return CustomRecurrence(
        hour, minute, interval_days if interval_days is not None else 7
    )


def compute_next_execution(config: RecurrenceConfig, from_time: datetime) -> datetime:
    """Return when ``config`` should next fire, measured from ``from_time``.

    - daily: today at hour:minute, or tomorrow if that is not after from_time
    - weekly: the nearest configured weekday at hour:minute after from_time
    - monthly: one calendar month later, clamped to the month's last day
    - custom: ``interval_days`` days later
    """
    candidate = from_time.replace(
        hour=config.hour, minute=config.minute, second=0, microsecond=0
    )

    if isinstance(config, DailyRecurrence):
        if candidate <= from_time:
            candidate += timedelta(days=1)
        return candidate

    if isinstance(config, WeeklyRecurrence):
        for offset in range(8):
            day = candidate + timedelta(days=offset)
            if day > from_time and sunday_based_weekday(day) in config.days_of_week:
                return day
        raise AssertionError("unreachable: a configured weekday occurs within 8 days")

    if isinstance(config, MonthlyRecurrence):
        return add_months(candidate, 1)

    if isinstance(config, CustomRecurrence):
        return candidate + timedelta(days=config.interval_days)

    raise TypeError(f"Unsupported recurrence config: {type(config).__name__}")


def sunday_based_weekday(moment: datetime) -> int:
    """Weekday with 0 = Sunday (``datetime.weekday`` has 0 = Monday)."""
    return (moment.weekday() + 1) % 7


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month.

    Jan 31 + 1 month is Feb 28 (or Feb 29 in a leap year).
    """
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
