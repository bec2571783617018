"""Unit tests for the CartState aggregate and its merge rules."""

import pytest

from orderkit.domain.exceptions import (
    EntityNotFoundError,
    InvalidProductError,
    InvalidQuantityError,
    ValidationError,
)
from orderkit.domain.model.cart import CartLineItem, CartState, LineKey
from orderkit.domain.model.value_objects import Money, Quantity
from tests.fakes import make_product, make_topping


class TestLineKey:

    def test_topping_order_does_not_matter(self):
        a, b = make_topping("a"), make_topping("b")
        assert LineKey.of("p1", [a, b]) == LineKey.of("p1", [b, a])

    def test_instructions_are_stripped(self):
        assert LineKey.of("p1", [], "no onions") == LineKey.of("p1", [], "  no onions  ")

    def test_topping_ids_and_objects_are_interchangeable(self):
        assert LineKey.of("p1", [make_topping("a")]) == LineKey.of("p1", ["a"])

    def test_different_toppings_differ(self):
        assert LineKey.of("p1", ["a"]) != LineKey.of("p1", ["a", "b"])


class TestCartLineItem:

    def test_subtotal_includes_toppings(self):
        line = CartLineItem(
            line_id="l1",
            product=make_product(price="1000"),
            quantity=Quantity(3),
            toppings=(make_topping("cheese", "250"), make_topping("egg", "150")),
        )
        assert line.unit_price == Money.of("1400")
        assert line.subtotal == Money.of("4200")

    def test_with_quantity_returns_complete_copy(self):
        line = CartLineItem("l1", make_product(), Quantity(1), special_instructions="x")
        updated = line.with_quantity(4)
        assert updated.quantity.value == 4
        assert updated.line_id == "l1"
        assert updated.special_instructions == "x"
        assert line.quantity.value == 1


class TestAddItem:

    def test_first_item_binds_merchant(self):
        cart = CartState.empty().with_item_added(make_product(merchant_id="m1"))
        assert cart.merchant.merchant_id == "m1"
        assert cart.merchant.merchant_name == "Soda Tica"
        assert len(cart.items) == 1

    def test_same_key_merges(self):
        product = make_product(price="1000")
        cart = CartState.empty().with_item_added(product).with_item_added(product)
        assert len(cart.items) == 1
        assert cart.items[0].quantity.value == 2
        assert cart.items[0].subtotal == Money.of("2000")

    def test_merge_keeps_existing_line_id_and_instructions(self):
        product = make_product()
        cart = CartState.empty().with_item_added(
            product, special_instructions="no onions", line_id="first"
        )
        cart = cart.with_item_added(product, 2, special_instructions="  no onions ")
        assert len(cart.items) == 1
        assert cart.items[0].line_id == "first"
        assert cart.items[0].special_instructions == "no onions"
        assert cart.items[0].quantity.value == 3

    def test_merge_prices_from_incoming_product_and_toppings(self):
        cart = CartState.empty().with_item_added(
            make_product(price="1000"),
            1,
            [make_topping("a", "100", name="Avocado"), make_topping("b", "50")],
        )
        cart = cart.with_item_added(
            make_product(price="1200"), 1, [make_topping("b", "80"), make_topping("a", "150")]
        )
        line = cart.items[0]
        assert [t.topping_id for t in line.toppings] == ["a", "b"]
        assert line.toppings[0].name == "Avocado"
        assert line.unit_price == Money.of("1430")
        assert line.subtotal == Money.of("2860")

    def test_different_key_appends_in_order(self):
        product = make_product()
        cart = (
            CartState.empty()
            .with_item_added(product, line_id="plain")
            .with_item_added(product, toppings=[make_topping("egg")], line_id="egg")
            .with_item_added(product, special_instructions="spicy", line_id="spicy")
        )
        assert [i.line_id for i in cart.items] == ["plain", "egg", "spicy"]

    def test_other_merchant_replaces_cart(self):
        cart = CartState.empty().with_item_added(make_product("p1", merchant_id="m1"))
        cart = cart.with_item_added(make_product("p9", merchant_id="m2", merchant_name="Pizza"), 2)
        assert len(cart.items) == 1
        assert cart.items[0].product.product_id == "p9"
        assert cart.items[0].quantity.value == 2
        assert cart.merchant.merchant_id == "m2"

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidQuantityError):
            CartState.empty().with_item_added(make_product(), 0)

    def test_missing_merchant_rejected(self):
        with pytest.raises(InvalidProductError, match="no merchant"):
            CartState.empty().with_item_added(make_product(merchant_id=""))

    def test_missing_product_id_rejected(self):
        with pytest.raises(InvalidProductError, match="no id"):
            CartState.empty().with_item_added(make_product(product_id="  "))

    def test_failed_add_leaves_original_untouched(self):
        cart = CartState.empty().with_item_added(make_product())
        with pytest.raises(InvalidQuantityError):
            cart.with_item_added(make_product(), -1)
        assert cart.items[0].quantity.value == 1


class TestTotals:

    def test_total_and_item_count(self):
        cart = (
            CartState.empty()
            .with_item_added(make_product("p1", price="500"), 2)
            .with_item_added(make_product("p2", price="2500.50"))
        )
        assert cart.total == Money.of("3500.50")
        assert cart.item_count == 3

    def test_empty_cart_totals(self):
        cart = CartState.empty()
        assert cart.total == Money.zero()
        assert cart.item_count == 0
        assert cart.is_empty


class TestQuantityAndRemoval:

    def _cart(self):
        return (
            CartState.empty()
            .with_item_added(make_product("p1"), line_id="a")
            .with_item_added(make_product("p2"), line_id="b")
        )

    def test_set_quantity(self):
        cart = self._cart().with_quantity("a", 5)
        assert cart.find("a").quantity.value == 5
        assert cart.item_count == 6

    def test_zero_quantity_removes(self):
        cart = self._cart().with_quantity("a", 0)
        assert cart.find("a") is None
        assert len(cart.items) == 1

    def test_removing_last_line_clears_merchant(self):
        cart = self._cart().without_item("a").without_item("b")
        assert cart.is_empty
        assert cart.merchant is None
        assert cart.can_add(make_product(merchant_id="anything"))

    def test_unknown_line_rejected(self):
        with pytest.raises(EntityNotFoundError, match="not found"):
            self._cart().without_item("zzz")
        with pytest.raises(EntityNotFoundError):
            self._cart().with_quantity("zzz", 3)


class TestQueries:

    def test_can_add(self):
        cart = CartState.empty().with_item_added(make_product(merchant_id="m1"))
        assert cart.can_add(make_product("p2", merchant_id="m1"))
        assert not cart.can_add(make_product("p2", merchant_id="m2"))

    def test_can_add_validates_product(self):
        cart = CartState.empty().with_item_added(make_product(merchant_id="m1"))
        with pytest.raises(InvalidProductError):
            cart.can_add({"merchant_id": "m1"})
        with pytest.raises(InvalidProductError, match="has no merchant"):
            CartState.empty().can_add(make_product(merchant_id=""))

    def test_adding_item_returns_affected_line(self):
        product = make_product()
        first, line = CartState.empty().adding_item(product, 2, [], "", line_id="a")
        assert line == first.find("a")
        merged, merged_line = first.adding_item(product, 3)
        assert merged_line.line_id == "a"
        assert merged_line.quantity.value == 5
        replaced, new_line = merged.adding_item(make_product("p9", merchant_id="m2"))
        assert replaced.items == (new_line,)

    def test_line_quantity(self):
        product = make_product()
        cart = CartState.empty().with_item_added(
            product, 3, [make_topping("a"), make_topping("b")], "extra rice"
        )
        assert cart.line_quantity("p1", ["b", "a"], " extra rice ") == 3
        assert cart.line_quantity("p1") == 0
        assert cart.line_quantity("p404", ["a", "b"], "extra rice") == 0

    def test_contains_product(self):
        cart = CartState.empty().with_item_added(make_product("p1"))
        assert cart.contains_product("p1")
        assert not cart.contains_product("p2")


class TestInvariants:

    def test_non_empty_cart_without_merchant_rejected(self):
        line = CartLineItem("l1", make_product(), Quantity(1))
        with pytest.raises(ValidationError, match="must have a merchant"):
            CartState(items=(line,), merchant=None)

    def test_mixed_merchants_rejected(self):
        line = CartLineItem("l1", make_product(merchant_id="m2"), Quantity(1))
        with pytest.raises(ValidationError, match="belongs to merchant"):
            CartState(items=(line,), merchant=make_product(merchant_id="m1").merchant)
