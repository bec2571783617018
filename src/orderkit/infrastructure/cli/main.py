from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click

from orderkit.application.cart_engine import CartEngine
from orderkit.application.persistence import PersistenceWriter
from orderkit.application.recurrence_scheduler import RecurrenceScheduler
from orderkit.domain.repository.key_value_store import KeyValueStore
from orderkit.infrastructure import bootstrap
from orderkit.infrastructure.cli.cart_commands import (
    cart_add,
    cart_checkout,
    cart_clear,
    cart_remove,
    cart_set_quantity,
    cart_show,
)
from orderkit.infrastructure.cli.recurring_commands import (
    recurring_delete,
    recurring_executed,
    recurring_list,
    recurring_reschedule,
    recurring_stats,
    recurring_toggle,
    recurring_upcoming,
)
from orderkit.infrastructure.config import get_settings
from orderkit.infrastructure.logging_config import configure_logging


@dataclass
class Session:
    """Per-invocation wiring shared by every subcommand."""

    store: KeyValueStore
    writer: PersistenceWriter
    upcoming_hours: int

    def cart(self) -> CartEngine:
        return bootstrap.cart_engine(self.store, self.writer)

    def scheduler(self) -> RecurrenceScheduler:
        return bootstrap.recurrence_scheduler(self.store, self.writer)


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the cart and recurring orders.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """orderkit: cart and recurring orders."""
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    configure_logging("DEBUG" if verbose else settings.log_level)

    writer = bootstrap.persistence_writer(settings)
    ctx.call_on_close(writer.close)
    ctx.obj = Session(
        store=bootstrap.key_value_store(settings),
        writer=writer,
        upcoming_hours=settings.upcoming_hours,
    )


@cli.group()
def cart() -> None:
    """Manage the cart."""


@cli.group()
def recurring() -> None:
    """Manage recurring orders."""


# Register subcommands
cart.add_command(cart_add)
cart.add_command(cart_checkout)
cart.add_command(cart_clear)
cart.add_command(cart_remove)
cart.add_command(cart_set_quantity)
cart.add_command(cart_show)
recurring.add_command(recurring_delete)
recurring.add_command(recurring_executed)
recurring.add_command(recurring_list)
recurring.add_command(recurring_reschedule)
recurring.add_command(recurring_stats)
recurring.add_command(recurring_toggle)
recurring.add_command(recurring_upcoming)
