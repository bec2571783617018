"""Raw (JSON-ready) mapping shared by the key-value repositories.

Decimals are written as strings and datetimes as ISO-8601 so every
field of the cart and of recurring definitions round-trips exactly.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

from orderkit.domain.exceptions import PersistenceError
from orderkit.domain.model.cart import CartLineItem, CartState
from orderkit.domain.model.product import MerchantRef, ProductRef, Topping
from orderkit.domain.model.recurrence import (
    CustomRecurrence,
    RecurrenceConfig,
    WeeklyRecurrence,
    build_recurrence,
)
from orderkit.domain.model.recurring_order import OrderSnapshot, RecurringOrderDefinition
from orderkit.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity


# --- Encoding -----------------------------------------------------------------


def dumps(raw: object) -> bytes:
    return (json.dumps(raw, indent=2) + "\n").encode("utf-8")


def loads(data: bytes) -> object:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise PersistenceError(f"Stored payload is not valid JSON: {exc}") from exc


# --- Value objects ------------------------------------------------------------


def money_to_raw(money: Money) -> dict:
    return {"amount": str(money.amount), "currency": money.currency}


def money_to_domain(raw: dict) -> Money:
    return Money(Decimal(raw["amount"]), raw.get("currency", DEFAULT_CURRENCY))


def merchant_to_raw(merchant: MerchantRef | None) -> dict | None:
    if merchant is None:
        return None
    return {"id": merchant.merchant_id, "name": merchant.merchant_name}


def merchant_to_domain(raw: dict | None) -> MerchantRef | None:
    if raw is None:
        return None
    return MerchantRef(merchant_id=raw["id"], merchant_name=raw.get("name", ""))


def _datetime_to_raw(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _datetime_to_domain(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw is not None else None


# --- Cart ---------------------------------------------------------------------


def line_to_raw(item: CartLineItem) -> dict:
    return {
        "id": item.line_id,
        "product": {
            "id": item.product.product_id,
            "name": item.product.name,
            "unit_price": money_to_raw(item.product.unit_price),
            "merchant_id": item.product.merchant_id,
            "merchant_name": item.product.merchant_name,
        },
        "quantity": item.quantity.value,
        "toppings": [
            {"id": t.topping_id, "name": t.name, "price": money_to_raw(t.price)}
            for t in item.toppings
        ],
        "special_instructions": item.special_instructions,
    }


def line_to_domain(raw: dict) -> CartLineItem:
    product = raw["product"]
    return CartLineItem(
        line_id=raw["id"],
        product=ProductRef(
            product_id=product["id"],
            name=product["name"],
            unit_price=money_to_domain(product["unit_price"]),
            merchant_id=product["merchant_id"],
            merchant_name=product.get("merchant_name", ""),
        ),
        quantity=Quantity(raw["quantity"]),
        toppings=tuple(
            Topping(topping_id=t["id"], name=t["name"], price=money_to_domain(t["price"]))
            for t in raw.get("toppings", [])
        ),
        special_instructions=raw.get("special_instructions", ""),
    )


def cart_to_raw(cart: CartState) -> dict:
    # total/item_count are informational; they are recomputed on load.
    return {
        "items": [line_to_raw(item) for item in cart.items],
        "merchant": merchant_to_raw(cart.merchant),
        "total": money_to_raw(cart.total),
        "item_count": cart.item_count,
    }


def cart_to_domain(raw: dict) -> CartState:
    return CartState(
        items=tuple(line_to_domain(i) for i in raw.get("items", [])),
        merchant=merchant_to_domain(raw.get("merchant")),
    )


# --- Recurring orders ---------------------------------------------------------


def recurrence_to_raw(config: RecurrenceConfig) -> dict:
    raw = {
        "frequency": config.frequency.value,
        "hour": config.hour,
        "minute": config.minute,
        "days": [],
        "custom_days": None,
    }
    if isinstance(config, WeeklyRecurrence):
        raw["days"] = sorted(config.days_of_week)
    if isinstance(config, CustomRecurrence):
        raw["custom_days"] = config.interval_days
    return raw


def recurrence_to_domain(raw: dict) -> RecurrenceConfig:
    return build_recurrence(
        raw["frequency"],
        raw["hour"],
        raw["minute"],
        days_of_week=raw.get("days") or (),
        interval_days=raw.get("custom_days"),
    )


def snapshot_to_raw(snapshot: OrderSnapshot) -> dict:
    return {
        "items": [line_to_raw(item) for item in snapshot.items],
        "merchant": merchant_to_raw(snapshot.merchant),
        "total": money_to_raw(snapshot.total),
        "delivery_address_ref": snapshot.delivery_address_ref,
        "payment_method_ref": snapshot.payment_method_ref,
    }


def snapshot_to_domain(raw: dict) -> OrderSnapshot:
    merchant = merchant_to_domain(raw["merchant"])
    if merchant is None:
        raise PersistenceError("Order snapshot is missing its merchant")
    return OrderSnapshot(
        items=tuple(line_to_domain(i) for i in raw["items"]),
        merchant=merchant,
        total=money_to_domain(raw["total"]),
        delivery_address_ref=raw.get("delivery_address_ref"),
        payment_method_ref=raw.get("payment_method_ref"),
    )


def definition_to_raw(definition: RecurringOrderDefinition) -> dict:
    return {
        "id": definition.definition_id,
        "snapshot": snapshot_to_raw(definition.snapshot),
        "recurring_config": recurrence_to_raw(definition.config),
        "is_active": definition.is_active,
        "created_at": _datetime_to_raw(definition.created_at),
        "execution_count": definition.execution_count,
        "last_executed_at": _datetime_to_raw(definition.last_executed_at),
        "next_execution_at": _datetime_to_raw(definition.next_execution_at),
    }


def definition_to_domain(raw: dict) -> RecurringOrderDefinition:
    is_active = bool(raw["is_active"])
    return RecurringOrderDefinition(
        definition_id=raw["id"],
        snapshot=snapshot_to_domain(raw["snapshot"]),
        config=recurrence_to_domain(raw["recurring_config"]),
        created_at=_datetime_to_domain(raw["created_at"]),
        is_active=is_active,
        execution_count=int(raw.get("execution_count", 0)),
        last_executed_at=_datetime_to_domain(raw.get("last_executed_at")),
        next_execution_at=(
            _datetime_to_domain(raw.get("next_execution_at")) if is_active else None
        ),
    )
