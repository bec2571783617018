"""Cart aggregate: the in-progress, not-yet-submitted order.

The cart is either empty or bound to exactly one merchant. It is
modelled as an immutable value: every transition returns a complete new
``CartState`` so a half-applied change can never be observed, and the
totals are always derived from the lines rather than stored.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Iterable

from orderkit.domain.exceptions import (
    EntityNotFoundError,
    InvalidProductError,
    ValidationError,
)
from orderkit.domain.model.product import MerchantRef, ProductRef, Topping
from orderkit.domain.model.value_objects import Money, Quantity


def new_line_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class LineKey:
    """Merge identity of a cart line.

    Topping ids are compared as a sorted tuple and instructions with
    surrounding whitespace stripped, so ``[a, b]`` and ``[b, a]`` or
    ``"no onions"`` and ``"  no onions  "`` land on the same line.
    """

    product_id: str
    topping_ids: tuple[str, ...]
    instructions: str

    @staticmethod
    def of(
        product_id: str,
        toppings: Iterable[Topping | str] = (),
        special_instructions: str = "",
    ) -> LineKey:
        ids = [t.topping_id if isinstance(t, Topping) else str(t) for t in toppings]
        return LineKey(
            product_id=product_id,
            topping_ids=tuple(sorted(ids)),
            instructions=(special_instructions or "").strip(),
        )


@dataclass(frozen=True)
class CartLineItem:
    """One aggregated entry in the cart.

    ``special_instructions`` is kept as typed for display; only the
    ``key`` uses the stripped form.
    """

    line_id: str
    product: ProductRef
    quantity: Quantity
    toppings: tuple[Topping, ...] = ()
    special_instructions: str = ""

    @property
    def key(self) -> LineKey:
        return LineKey.of(
            self.product.product_id, self.toppings, self.special_instructions
        )

    @property
    def unit_price(self) -> Money:
        """Product price plus every chosen topping."""
        result = self.product.unit_price
        for topping in self.toppings:
            result = result + topping.price
        return result

    @property
    def subtotal(self) -> Money:
        return self.unit_price * self.quantity.value

    def with_quantity(self, quantity: int) -> CartLineItem:
        return replace(self, quantity=Quantity(quantity))

    def merged_with(
        self, product: ProductRef, toppings: Iterable[Topping], quantity: Quantity
    ) -> CartLineItem:
        """Absorb another addition with the same key.

        The line keeps its id, topping order and instructions; prices come
        from the incoming product and toppings.
        """
        prices = {t.topping_id: t.price for t in toppings}
        return replace(
            self,
            product=product,
            quantity=Quantity(self.quantity.value + quantity.value),
            toppings=tuple(
                replace(t, price=prices.get(t.topping_id, t.price)) for t in self.toppings
            ),
        )


@dataclass(frozen=True)
class CartState:
    """Aggregate root for the cart.

    Invariants:
    - ``merchant`` is None iff ``items`` is empty
    - every line belongs to ``merchant``
    """

    items: tuple[CartLineItem, ...] = ()
    merchant: MerchantRef | None = None

    def __post_init__(self) -> None:
        if not self.items:
            if self.merchant is not None:
                raise ValidationError("An empty cart cannot have a merchant")
            return
        if self.merchant is None:
            raise ValidationError("A non-empty cart must have a merchant")
        for item in self.items:
            if item.product.merchant_id != self.merchant.merchant_id:
                raise ValidationError(
                    f"Line '{item.product.name}' belongs to merchant "
                    f"{item.product.merchant_id}, cart is bound to "
                    f"{self.merchant.merchant_id}"
                )

    @staticmethod
    def empty() -> CartState:
        return CartState()

    # --- Computed properties --------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total(self) -> Money:
        if not self.items:
            return Money.zero()
        result = Money.zero(self.items[0].subtotal.currency)
        for item in self.items:
            result = result + item.subtotal
        return result

    @property
    def item_count(self) -> int:
        """Sum of quantities, not the number of lines."""
        return sum(item.quantity.value for item in self.items)

    # --- Queries --------------------------------------------------------------

    def can_add(self, product: ProductRef) -> bool:
        """Whether ``product`` fits without replacing the cart."""
        _check_product(product)
        if self.merchant is None:
            return True
        return product.merchant_id == self.merchant.merchant_id

    def find(self, line_id: str) -> CartLineItem | None:
        for item in self.items:
            if item.line_id == line_id:
                return item
        return None

    def find_by_key(self, key: LineKey) -> CartLineItem | None:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def line_quantity(
        self,
        product_id: str,
        toppings: Iterable[Topping | str] = (),
        special_instructions: str = "",
    ) -> int:
        item = self.find_by_key(LineKey.of(product_id, toppings, special_instructions))
        return item.quantity.value if item is not None else 0

    def contains_product(self, product_id: str) -> bool:
        return any(item.product.product_id == product_id for item in self.items)

    # --- Transitions ----------------------------------------------------------

    def with_item_added(
        self,
        product: ProductRef,
        quantity: int = 1,
        toppings: Iterable[Topping] = (),
        special_instructions: str = "",
        line_id: str | None = None,
    ) -> CartState:
        """Return the cart after adding ``quantity`` units of ``product``.

        A product from a different merchant replaces the whole cart; the
        caller is expected to have asked the customer first.
        """
        cart, _ = self.adding_item(
            product, quantity, toppings, special_instructions, line_id
        )
        return cart

    def adding_item(
        self,
        product: ProductRef,
        quantity: int = 1,
        toppings: Iterable[Topping] = (),
        special_instructions: str = "",
        line_id: str | None = None,
    ) -> tuple[CartState, CartLineItem]:
        """Like ``with_item_added`` but also return the line now holding the units."""
        qty = Quantity(quantity)
        _check_product(product)
        chosen = tuple(toppings)
        for topping in chosen:
            if not isinstance(topping, Topping):
                raise ValidationError(f"Invalid topping: {topping!r}")
        instructions = special_instructions or ""

        if not self.can_add(product):
            line = _fresh_line(product, qty, chosen, instructions, line_id)
            return CartState(items=(line,), merchant=product.merchant), line

        key = LineKey.of(product.product_id, chosen, instructions)
        existing = self.find_by_key(key)
        if existing is not None:
            line = existing.merged_with(product, chosen, qty)
            items = tuple(line if i is existing else i for i in self.items)
        else:
            line = _fresh_line(product, qty, chosen, instructions, line_id)
            items = self.items + (line,)

        return CartState(items=items, merchant=self.merchant or product.merchant), line

    def with_quantity(self, line_id: str, quantity: int) -> CartState:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.without_item(line_id)
        line = self._require(line_id)
        updated = line.with_quantity(quantity)
        return replace(
            self, items=tuple(updated if i is line else i for i in self.items)
        )

    def without_item(self, line_id: str) -> CartState:
        line = self._require(line_id)
        items = tuple(i for i in self.items if i is not line)
        if not items:
            return CartState.empty()
        return CartState(items=items, merchant=self.merchant)

    # --- Internal helpers -----------------------------------------------------

    def _require(self, line_id: str) -> CartLineItem:
        line = self.find(line_id)
        if line is None:
            raise EntityNotFoundError(f"Cart line '{line_id}' not found")
        return line


def _check_product(product: ProductRef) -> None:
    if not isinstance(product, ProductRef):
        raise InvalidProductError(f"Not a product reference: {product!r}")
    if not product.product_id or not product.product_id.strip():
        raise InvalidProductError(f"Product '{product.name}' has no id")
    if not product.merchant_id or not product.merchant_id.strip():
        raise InvalidProductError(f"Product '{product.name}' has no merchant")


def _fresh_line(
    product: ProductRef,
    quantity: Quantity,
    toppings: tuple[Topping, ...],
    instructions: str,
    line_id: str | None,
) -> CartLineItem:
    return CartLineItem(
        line_id=line_id or new_line_id(),
        product=product,
        quantity=quantity,
        toppings=toppings,
        special_instructions=instructions,
    )
