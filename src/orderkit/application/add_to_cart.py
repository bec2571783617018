"""Application service: Add To Cart use case.

Wraps ``CartEngine.add_item`` with the confirmation step the engine
itself does not perform: adding a product from another merchant throws
away the current cart, so the customer is asked first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from orderkit.application.cart_engine import CartEngine
from orderkit.domain.model.cart import CartLineItem
from orderkit.domain.model.product import MerchantRef, ProductRef, Topping

# (current merchant, incoming product) -> proceed?
ConfirmReplace = Callable[[MerchantRef, ProductRef], bool]


@dataclass(frozen=True)
class AddToCartResult:
    added: bool
    replaced_cart: bool = False
    line: CartLineItem | None = None


class AddToCartHandler:

    def __init__(self, engine: CartEngine, confirm: ConfirmReplace) -> None:
        self._engine = engine
        self._confirm = confirm

    def handle(
        self,
        product: ProductRef,
        quantity: int = 1,
        toppings: Iterable[Topping] = (),
        special_instructions: str = "",
    ) -> AddToCartResult:
        current = self._engine.merchant
        switching = current is not None and not self._engine.can_add_item(product)

        if switching and not self._confirm(current, product):
            return AddToCartResult(added=False)

        line = self._engine.add_item(product, quantity, toppings, special_instructions)
        return AddToCartResult(added=True, replaced_cart=switching, line=line)
