"""Catalog references captured by the cart.

The catalog itself lives in a remote service. The cart only keeps a
display snapshot of what the customer saw when adding an item, so these
are plain immutable records with no lifecycle of their own.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderkit.domain.model.value_objects import Money


@dataclass(frozen=True)
class MerchantRef:
    """The restaurant a non-empty cart is bound to."""

    merchant_id: str
    merchant_name: str


@dataclass(frozen=True)
class Topping:
    topping_id: str
    name: str
    price: Money


@dataclass(frozen=True)
class ProductRef:
    """Denormalized product snapshot (price locked at add-time)."""

    product_id: str
    name: str
    unit_price: Money
    merchant_id: str
    merchant_name: str = ""

    @property
    def merchant(self) -> MerchantRef:
        return MerchantRef(self.merchant_id, self.merchant_name)
