"""Tests for the Cart aggregate: line items, charges and derived totals."""

from datetime import timedelta

import pytest
from protean.exceptions import ValidationError
from shared.errors import NotFoundError
from storefront.cart.cart import Cart
from storefront.cart.events import CartCleared, CartDiscountApplied, CartItemAdded
from storefront.shared.clock import utcnow

LARGE = [{"option": "size", "value": "large", "additional_price": 1.5}]


def _cart():
    return Cart.create(user_id="user-001")


class TestCartCreation:
    def test_new_cart_is_empty(self):
        cart = _cart()
        assert cart.is_empty
        assert cart.total_items == 0
        assert cart.total_price == 0.0
        assert cart.final_total == 0.0
        assert cart.discount.amount == 0.0
        assert cart.tax.rate == 0.0

    def test_cart_is_keyed_by_user(self):
        assert str(_cart().user_id) == "user-001"

    def test_new_cart_expires_in_a_week(self):
        cart = _cart()
        assert not cart.is_expired()
        assert cart.is_expired(utcnow() + timedelta(days=8))


class TestAddItem:
    def test_add_item(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 100.0)
        assert cart.total_items == 2
        assert cart.total_price == 200.0
        assert cart.final_total == 200.0

    def test_identical_line_is_merged(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0, LARGE)
        cart.add_item("prod-1", 2, 3.0, LARGE)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.total_price == 13.5

    def test_different_customizations_are_separate_lines(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0)
        cart.add_item("prod-1", 1, 3.0, LARGE)
        assert len(cart.items) == 2
        assert cart.total_price == 7.5

    def test_merge_overwrites_notes_only_when_given(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0, notes="No sugar")
        cart.add_item("prod-1", 1, 3.0)
        assert cart.items[0].notes == "No sugar"
        cart.add_item("prod-1", 1, 3.0, notes="Extra hot")
        assert cart.items[0].notes == "Extra hot"

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_item("prod-1", 0, 3.0)

    def test_raises_item_added_event(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0)
        assert isinstance(cart._events[-1], CartItemAdded)


class TestUpdateAndRemove:
    def test_update_quantity(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.update_item_quantity("prod-1", 4)
        assert cart.items[0].quantity == 4
        assert cart.total_price == 40.0

    def test_update_to_zero_removes_line(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.update_item_quantity("prod-1", 0)
        assert cart.is_empty
        assert cart.final_total == 0.0

    def test_update_matches_customizations(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0)
        cart.add_item("prod-1", 1, 3.0, LARGE)
        cart.update_item_quantity("prod-1", 3, LARGE)
        large = cart.find_item("prod-1", LARGE)
        plain = cart.find_item("prod-1")
        assert large.quantity == 3
        assert plain.quantity == 1

    def test_update_missing_item(self):
        with pytest.raises(NotFoundError, match="Item not found in cart"):
            _cart().update_item_quantity("prod-1", 2)

    def test_remove_item(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.add_item("prod-2", 1, 5.0)
        cart.remove_item("prod-1")
        assert len(cart.items) == 1
        assert cart.total_price == 5.0

    def test_remove_with_wrong_customizations(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 3.0, LARGE)
        with pytest.raises(NotFoundError):
            cart.remove_item("prod-1")


class TestDiscount:
    def test_percentage_discount_on_1000(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 1000.0)
        cart.apply_discount("SAVE20", amount=0, percentage=20)
        assert cart.discount.amount == 200.0
        assert cart.subtotal == 800.0
        assert cart.final_total == 800.0

    def test_percentage_discount_follows_later_changes(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.apply_discount("TEN", percentage=10)
        cart.add_item("prod-2", 1, 100.0)
        assert cart.discount.amount == 20.0
        assert cart.final_total == 180.0

    def test_flat_discount(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.apply_discount("FLAT15", amount=15)
        assert cart.final_total == 85.0

    def test_flat_discount_cannot_push_below_zero(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.apply_discount("BIG", amount=50)
        assert cart.subtotal == 0.0
        assert cart.final_total == 0.0

    def test_discount_on_empty_cart_rejected(self):
        with pytest.raises(ValidationError):
            _cart().apply_discount("SAVE20", percentage=20)

    def test_remove_discount(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.apply_discount("TEN", percentage=10)
        cart.remove_discount()
        assert cart.discount.amount == 0.0
        assert not cart.discount.code
        assert cart.final_total == 100.0

    def test_raises_discount_event(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.apply_discount("TEN", percentage=10)
        event = cart._events[-1]
        assert isinstance(event, CartDiscountApplied)
        assert event.amount == 10.0


class TestTaxAndDelivery:
    def test_tax_applies_to_discounted_subtotal(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 50.0)
        cart.apply_discount("FLAT10", amount=10)
        cart.set_tax_rate(10)
        assert cart.tax.amount == 9.0
        assert cart.final_total == 99.0

    def test_delivery_fee_added_last(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.set_tax_rate(10)
        cart.set_delivery_fee(5)
        assert cart.final_total == 115.0

    def test_tax_recomputed_when_items_change(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 100.0)
        cart.set_tax_rate(5)
        cart.update_item_quantity("prod-1", 2)
        assert cart.tax.amount == 10.0
        assert cart.final_total == 210.0


class TestClear:
    def test_clear_resets_everything(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 50.0)
        cart.apply_discount("TEN", percentage=10)
        cart.set_tax_rate(5)
        cart.set_delivery_fee(3)
        cart.clear()
        assert cart.is_empty
        assert cart.total_items == 0
        assert cart.total_price == 0.0
        assert cart.discount.amount == 0.0
        assert cart.tax.rate == 0.0
        assert cart.delivery_fee == 0.0
        assert cart.final_total == 0.0

    def test_clear_records_reason(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 5.0)
        cart.clear(reason="checkout")
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.reason == "checkout"


class TestTotalsInvariant:
    def test_totals_cannot_be_set_directly(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        with pytest.raises(ValidationError):
            cart.final_total = 1.0

    def test_line_snapshot(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 3.0, LARGE, notes="Hot")
        assert cart.line_snapshot() == [
            {
                "product_id": "prod-1",
                "quantity": 2,
                "price": 3.0,
                "customizations": LARGE,
                "notes": "Hot",
            }
        ]
