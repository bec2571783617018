"""CLI commands for the cart."""

from __future__ import annotations

import click

from orderkit.application.add_to_cart import AddToCartHandler
from orderkit.application.checkout import CheckoutHandler
from orderkit.domain.exceptions import DomainException
from orderkit.domain.model.product import MerchantRef, ProductRef, Topping
from orderkit.domain.model.value_objects import Money
from orderkit.infrastructure import bootstrap
from orderkit.infrastructure.cli.recurring_commands import (
    FREQUENCY_CHOICE,
    build_config,
    describe,
    format_moment,
    recurrence_options,
)
from orderkit.infrastructure.config import get_settings


def _parse_topping(raw: str, currency: str) -> Topping:
    """Parse 'cheese:Extra cheese:500' into a Topping."""
    parts = raw.split(":")
    if len(parts) != 3:
        raise click.BadParameter(
            f"Invalid topping '{raw}'. Expected 'id:name:price'."
        )
    topping_id, name, price = (p.strip() for p in parts)
    try:
        return Topping(topping_id=topping_id, name=name, price=Money.of(price, currency))
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def _confirm_replace(current: MerchantRef, product: ProductRef) -> bool:
    return click.confirm(
        f"Your cart has items from {current.merchant_name or current.merchant_id}. "
        f"Empty it and add {product.name} from "
        f"{product.merchant_name or product.merchant_id}?",
        default=False,
    )


def _display_cart(engine) -> None:
    if engine.state.is_empty:
        click.echo("Cart is empty.")
        return

    click.echo(f"Merchant: {engine.merchant.merchant_name or engine.merchant.merchant_id}")
    click.echo()
    click.echo(f"  {'Line':<34} {'Product':<20} {'Qty':>5} {'Subtotal':>14}")
    click.echo(f"  {'-'*76}")
    for item in engine.items:
        click.echo(
            f"  {item.line_id:<34} {item.product.name:<20} "
            f"{item.quantity.value:>5} {str(item.subtotal):>14}"
        )
        for topping in item.toppings:
            click.echo(f"  {'':<34}   + {topping.name} ({topping.price})")
        if item.special_instructions.strip():
            click.echo(f"  {'':<34}   \"{item.special_instructions.strip()}\"")
    click.echo(f"  {'-'*76}")
    click.echo(f"  {'Items':<20} {engine.item_count:>56}")
    click.echo(f"  {'Cart Total':<20} {str(engine.total):>56}")


@click.command("add")
@click.option("--product-id", required=True, help="Catalog product ID.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Unit price (e.g. 2500.50).")
@click.option("--merchant-id", required=True, help="Restaurant ID.")
@click.option("--merchant-name", default="", help="Restaurant name.")
@click.option("--quantity", type=int, default=1, show_default=True, help="Units to add.")
@click.option("--topping", "toppings", multiple=True, help="Topping as 'id:name:price'; repeatable.")
@click.option("--notes", default="", help="Special instructions.")
@click.pass_obj
def cart_add(
    session,
    product_id: str,
    name: str,
    price: str,
    merchant_id: str,
    merchant_name: str,
    quantity: int,
    toppings: tuple[str, ...],
    notes: str,
) -> None:
    """Add a product to the cart."""
    currency = get_settings().currency
    chosen = [_parse_topping(raw, currency) for raw in toppings]
    handler = AddToCartHandler(session.cart(), confirm=_confirm_replace)

    try:
        product = ProductRef(
            product_id=product_id,
            name=name,
            unit_price=Money.of(price, currency),
            merchant_id=merchant_id,
            merchant_name=merchant_name,
        )
        result = handler.handle(product, quantity, chosen, notes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.added:
        click.echo("Cart left unchanged.")
        return
    if result.replaced_cart:
        click.echo("Previous cart emptied.")
    click.echo(
        f"{result.line.product.name} x{result.line.quantity} in cart "
        f"(line {result.line.line_id}, subtotal {result.line.subtotal})"
    )


@click.command("show")
@click.pass_obj
def cart_show(session) -> None:
    """Show the cart."""
    _display_cart(session.cart())


@click.command("set-qty")
@click.option("--line", "line_id", required=True, help="Cart line ID.")
@click.option("--quantity", type=int, required=True, help="New quantity; 0 removes the line.")
@click.pass_obj
def cart_set_quantity(session, line_id: str, quantity: int) -> None:
    """Change the quantity of a cart line."""
    engine = session.cart()
    try:
        engine.update_quantity(line_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_cart(engine)


@click.command("remove")
@click.option("--line", "line_id", required=True, help="Cart line ID.")
@click.pass_obj
def cart_remove(session, line_id: str) -> None:
    """Remove a line from the cart."""
    engine = session.cart()
    try:
        engine.remove_item(line_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _display_cart(engine)


@click.command("clear")
@click.pass_obj
def cart_clear(session) -> None:
    """Empty the cart."""
    session.cart().clear_cart()
    click.echo("Cart cleared.")


@click.command("checkout")
@click.option("--address", default=None, help="Delivery address reference.")
@click.option("--payment", default=None, help="Payment method reference.")
@click.option("--recurring", "frequency", type=FREQUENCY_CHOICE, default=None,
              help="Also repeat this order.")
@recurrence_options
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def cart_checkout(
    session,
    address: str | None,
    payment: str | None,
    frequency: str | None,
    at: str,
    days: tuple[int, ...],
    interval_days: int,
    yes: bool,
) -> None:
    """Place the order in the cart, optionally as a recurring order."""
    engine = session.cart()
    scheduler = session.scheduler()
    handler = CheckoutHandler(engine, scheduler, bootstrap.order_placer(session.store))

    try:
        config = build_config(frequency, at, days, interval_days) if frequency else None
        if not engine.state.is_empty and not yes:
            click.confirm(f"Place this order for {engine.total}?", abort=True)
        result = handler.handle(address, payment, config)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {result.order_id} placed for {result.snapshot.total}.")
    if result.recurring_id is not None:
        definition = scheduler.get(result.recurring_id)
        click.echo(
            f"Recurring order {result.recurring_id} set up: {describe(definition.config)}, "
            f"next run {format_moment(definition.next_execution_at)}."
        )
