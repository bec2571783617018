"""Application service: Cart Engine.

Owns the in-progress cart for one customer session. The persisted cart
is read once at construction; afterwards every query is answered from
memory and every successful mutation schedules a write of the complete
new state through the ``PersistenceWriter``.
"""

from __future__ import annotations

import logging
from typing import Iterable

from orderkit.application.persistence import PersistenceWriter
from orderkit.domain.exceptions import PersistenceError, ValidationError
from orderkit.domain.model.cart import CartLineItem, CartState
from orderkit.domain.model.product import MerchantRef, ProductRef, Topping
from orderkit.domain.model.recurring_order import OrderSnapshot
from orderkit.domain.model.value_objects import Money
from orderkit.domain.repository.cart_repository import CartRepository

logger = logging.getLogger(__name__)

CART_KEY = "@cart"


class CartEngine:

    def __init__(self, cart_repo: CartRepository, writer: PersistenceWriter) -> None:
        self._cart_repo = cart_repo
        self._writer = writer
        self._state = self._load()

    # --- Read-only views ------------------------------------------------------

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def items(self) -> tuple[CartLineItem, ...]:
        return self._state.items

    @property
    def merchant(self) -> MerchantRef | None:
        return self._state.merchant

    @property
    def total(self) -> Money:
        return self._state.total

    @property
    def item_count(self) -> int:
        return self._state.item_count

    # --- Commands -------------------------------------------------------------

    def add_item(
        self,
        product: ProductRef,
        quantity: int = 1,
        toppings: Iterable[Topping] = (),
        special_instructions: str = "",
    ) -> CartLineItem:
        """Add units of a product and return the line that now holds them.

        If the cart is bound to another merchant it is replaced outright;
        ask the customer before calling this in that case.
        """
        switching = self._state.merchant is not None and not self._state.can_add(product)
        new_state, line = self._state.adding_item(
            product, quantity, toppings, special_instructions
        )
        if switching:
            logger.info(
                "Replacing cart from merchant %s with product from merchant %s",
                self._state.merchant.merchant_id,
                product.merchant_id,
            )
        self._commit(new_state)
        return line

    def update_quantity(self, line_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        self._commit(self._state.with_quantity(line_id, quantity))

    def remove_item(self, line_id: str) -> None:
        self._commit(self._state.without_item(line_id))

    def clear_cart(self) -> None:
        self._commit(CartState.empty())

    # --- Queries --------------------------------------------------------------

    def can_add_item(self, product: ProductRef) -> bool:
        return self._state.can_add(product)

    def line_quantity(
        self,
        product_id: str,
        toppings: Iterable[Topping | str] = (),
        special_instructions: str = "",
    ) -> int:
        return self._state.line_quantity(product_id, toppings, special_instructions)

    def contains_product(self, product_id: str) -> bool:
        return self._state.contains_product(product_id)

    def snapshot(
        self,
        delivery_address_ref: str | None = None,
        payment_method_ref: str | None = None,
    ) -> OrderSnapshot:
        """Freeze the current cart for checkout or a recurring definition."""
        return OrderSnapshot.of(self._state, delivery_address_ref, payment_method_ref)

    # --- Internal helpers -----------------------------------------------------

    def _commit(self, new_state: CartState) -> None:
        self._state = new_state
        logger.debug(
            "Cart now has %d line(s), %d item(s), total %s",
            len(new_state.items),
            new_state.item_count,
            new_state.total,
        )
        self._writer.submit(CART_KEY, lambda: self._cart_repo.save(new_state))

    def _load(self) -> CartState:
        try:
            loaded = self._cart_repo.load()
        except (PersistenceError, ValidationError) as exc:
            logger.warning("Could not restore cart, starting empty: %s", exc)
            return CartState.empty()
        if loaded is None:
            return CartState.empty()
        logger.debug("Restored cart with %d line(s)", len(loaded.items))
        return loaded
