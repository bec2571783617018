"""CLI commands for recurring orders."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import click

from orderkit.domain.exceptions import DomainException
from orderkit.domain.model.recurrence import (
    CustomRecurrence,
    Frequency,
    RecurrenceConfig,
    WeeklyRecurrence,
    build_recurrence,
)
from orderkit.domain.model.recurring_order import RecurringOrderDefinition
from orderkit.domain.model.value_objects import Money
from orderkit.infrastructure.config import get_settings

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


# --- Shared option parsing ----------------------------------------------------


def parse_time(raw: str) -> tuple[int, int]:
    """Parse '07:30' into (7, 30)."""
    try:
        hour_str, minute_str = raw.split(":", 1)
        return int(hour_str), int(minute_str)
    except ValueError:
        raise click.BadParameter(f"Invalid time '{raw}'. Expected 'HH:MM'.")


def recurrence_options(func: Callable) -> Callable:
    """Options describing a recurrence rule, shared by checkout and reschedule."""
    func = click.option(
        "--every", "interval_days", type=int, default=7, show_default=True,
        help="Interval in days for 'custom'.",
    )(func)
    func = click.option(
        "--day", "days", type=click.IntRange(0, 6), multiple=True,
        help="Weekday for 'weekly' (0=Sun .. 6=Sat); repeatable.",
    )(func)
    func = click.option(
        "--at", "at", default="12:00", show_default=True, help="Time of day, HH:MM.",
    )(func)
    return func


def build_config(frequency: str, at: str, days: tuple[int, ...], interval_days: int) -> RecurrenceConfig:
    hour, minute = parse_time(at)
    return build_recurrence(
        frequency, hour, minute, days_of_week=days, interval_days=interval_days
    )


FREQUENCY_CHOICE = click.Choice([f.value for f in Frequency])


# --- Display ------------------------------------------------------------------


def format_moment(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()


def describe(config: RecurrenceConfig) -> str:
    at = f"{config.hour:02d}:{config.minute:02d}"
    if isinstance(config, WeeklyRecurrence):
        days = ",".join(DAY_NAMES[d] for d in sorted(config.days_of_week))
        return f"weekly on {days} at {at}"
    if isinstance(config, CustomRecurrence):
        return f"every {config.interval_days} day(s) at {at}"
    return f"{config.frequency.value} at {at}"


def _display_definitions(definitions: list[RecurringOrderDefinition]) -> None:
    click.echo(f"{'ID':<42} {'Merchant':<16} {'Rule':<28} {'Next':<22} {'Runs':>4}")
    click.echo("-" * 116)
    for d in definitions:
        state = format_moment(d.next_execution_at) if d.is_active else "paused"
        click.echo(
            f"{d.definition_id:<42} {d.snapshot.merchant.merchant_name:<16} "
            f"{describe(d.config):<28} {state:<22} {d.execution_count:>4}"
        )


# --- Commands -----------------------------------------------------------------


@click.command("list")
@click.pass_obj
def recurring_list(session) -> None:
    """List every recurring order."""
    definitions = session.scheduler().definitions
    if not definitions:
        click.echo("No recurring orders.")
        return
    _display_definitions(definitions)


@click.command("upcoming")
@click.option("--hours", type=float, default=None, help="Look-ahead window in hours.")
@click.pass_obj
def recurring_upcoming(session, hours: float | None) -> None:
    """Show active recurring orders due soon."""
    window = hours if hours is not None else session.upcoming_hours
    definitions = session.scheduler().upcoming(window)
    if not definitions:
        click.echo(f"Nothing due in the next {window:g} hour(s).")
        return
    _display_definitions(definitions)


@click.command("toggle")
@click.option("--id", "definition_id", required=True, help="Recurring order ID.")
@click.pass_obj
def recurring_toggle(session, definition_id: str) -> None:
    """Pause or resume a recurring order."""
    scheduler = session.scheduler()
    try:
        active = scheduler.toggle_active(definition_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if active:
        next_at = scheduler.get(definition_id).next_execution_at
        click.echo(f"Recurring order {definition_id} resumed, next run {format_moment(next_at)}.")
    else:
        click.echo(f"Recurring order {definition_id} paused.")


@click.command("delete")
@click.option("--id", "definition_id", required=True, help="Recurring order ID.")
@click.pass_obj
def recurring_delete(session, definition_id: str) -> None:
    """Delete a recurring order permanently."""
    try:
        session.scheduler().delete_definition(definition_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Recurring order {definition_id} deleted.")


@click.command("reschedule")
@click.option("--id", "definition_id", required=True, help="Recurring order ID.")
@click.option("--frequency", type=FREQUENCY_CHOICE, required=True, help="Recurrence frequency.")
@recurrence_options
@click.pass_obj
def recurring_reschedule(
    session, definition_id: str, frequency: str, at: str, days: tuple[int, ...], interval_days: int
) -> None:
    """Change the recurrence rule of a recurring order."""
    scheduler = session.scheduler()
    try:
        config = build_config(frequency, at, days, interval_days)
        scheduler.update_config(definition_id, config)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    updated = scheduler.get(definition_id)
    click.echo(
        f"Recurring order {definition_id} now runs {describe(config)}; "
        f"next run {format_moment(updated.next_execution_at)}."
    )


@click.command("executed")
@click.option("--id", "definition_id", required=True, help="Recurring order ID.")
@click.pass_obj
def recurring_executed(session, definition_id: str) -> None:
    """Record that an executor fired a recurring order just now."""
    try:
        updated = session.scheduler().record_execution(definition_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(
        f"Recurring order {definition_id} executed {updated.execution_count} time(s); "
        f"next run {format_moment(updated.next_execution_at)}."
    )


@click.command("stats")
@click.pass_obj
def recurring_stats(session) -> None:
    """Summarize recurring orders."""
    stats = session.scheduler().stats()
    click.echo(f"Active:          {stats.active_count}")
    click.echo(f"Total:           {stats.total_count}")
    click.echo(f"Executions:      {stats.total_executions}")
    values = [str(stats.total_value_executed[c]) for c in sorted(stats.total_value_executed)]
    if not values:
        values = [str(Money.zero(get_settings().currency))]
    click.echo(f"Value executed:  {', '.join(values)}")
