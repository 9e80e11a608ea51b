"""Tests for Order creation, snapshots, notes and payment status."""

from datetime import timedelta

import pytest
from protean.exceptions import ValidationError
from storefront.order.events import OrderPaymentStatusChanged, OrderPlaced
from storefront.order.order import CustomerInfo, Order, OrderPricing
from storefront.shared.clock import utcnow


def _line(**overrides):
    line = {
        "product_id": "prod-001",
        "name": "Masala Chai",
        "price": 3.5,
        "image": "/chai.png",
        "quantity": 2,
        "customizations": [{"option": "size", "value": "large", "additional_price": 1.0}],
        "notes": "Extra hot",
        "subtotal": 9.0,
    }
    line.update(overrides)
    return line


def _place(**overrides):
    kwargs = {
        "order_number": "202610190001",
        "user_id": "user-001",
        "lines": [_line()],
        "pricing": OrderPricing(subtotal=9.0, tax_rate=10.0, tax_amount=0.9, total=9.9),
        "customer_info": CustomerInfo(name="Asha Rahman", phone="+8801711000000"),
        "order_type": "takeaway",
        "payment_method": "card",
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlace:
    def test_snapshot_items(self):
        order = _place()
        item = order.items[0]
        assert item.name == "Masala Chai"
        assert item.price == 3.5
        assert item.image == "/chai.png"
        assert item.quantity == 2
        assert item.subtotal == 9.0
        assert '"large"' in item.customizations

    def test_order_date_from_number(self):
        assert _place().order_date == "20261019"

    def test_pricing_copied(self):
        order = _place()
        assert order.pricing.total == 9.9
        assert order.pricing.tax_amount == 0.9

    def test_defaults(self):
        order = _place()
        assert order.estimated_prep_time == 15
        assert order.payment_status == "pending"
        assert order.total_items == 2

    def test_raises_placed_event(self):
        order = _place()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.order_number == "202610190001"
        assert event.item_count == 2
        assert event.total == 9.9

    def test_needs_items(self):
        with pytest.raises(ValidationError):
            _place(lines=[])

    def test_unknown_order_type(self):
        with pytest.raises(ValidationError):
            _place(order_type="drive-through")

    def test_delivery_requires_street_and_city(self):
        with pytest.raises(ValidationError):
            _place(order_type="delivery")

    def test_delivery_with_address(self):
        info = CustomerInfo(name="Asha Rahman", street="12 Lake Road", city="Dhaka")
        order = _place(order_type="delivery", customer_info=info)
        assert order.customer_info.city == "Dhaka"

    def test_dine_in_requires_table(self):
        with pytest.raises(ValidationError):
            _place(order_type="dine-in")

    def test_dine_in_with_table(self):
        assert _place(order_type="dine-in", table_number=7).table_number == 7

    def test_customer_name_required(self):
        with pytest.raises(ValidationError):
            CustomerInfo(email="asha@example.com")


class TestDerivedValues:
    def test_duration(self):
        order = _place()
        order.completed_at = order.ordered_at + timedelta(minutes=25)
        assert order.duration == 25

    def test_duration_unknown_until_completed(self):
        assert _place().duration is None

    def test_minutes_since_order(self):
        order = _place()
        assert order.minutes_since_order(utcnow() + timedelta(minutes=30)) == 30

    def test_ownership(self):
        order = _place()
        assert order.is_owned_by("user-001")
        assert not order.is_owned_by("user-002")


class TestNotes:
    def test_notes_are_appended(self):
        order = _place()
        order.add_note("Called the customer", by="staff-1")
        order.add_note("Customer on the way")
        assert [n.content for n in order.notes] == ["Called the customer", "Customer on the way"]
        assert str(order.notes[0].added_by) == "staff-1"


class TestPaymentStatus:
    def test_paid_stamps_paid_at(self):
        order = _place()
        order.update_payment_status("paid", transaction_id="txn-1", gateway="stripe")
        assert order.payment_status == "paid"
        assert order.payment_details.paid_at is not None
        assert order.payment_details.transaction_id == "txn-1"

    def test_refund_records_amount(self):
        order = _place()
        order.update_payment_status("paid", transaction_id="txn-1")
        order.update_payment_status("partial-refund", refund_amount=4.0)
        assert order.payment_status == "partial-refund"
        assert order.payment_details.refund_amount == 4.0
        assert order.payment_details.refunded_at is not None
        assert order.payment_details.paid_at is not None
        assert order.payment_details.transaction_id == "txn-1"

    def test_unknown_payment_status(self):
        with pytest.raises(ValidationError):
            _place().update_payment_status("bounced")

    def test_raises_payment_event(self):
        order = _place()
        order.update_payment_status("failed")
        event = order._events[-1]
        assert isinstance(event, OrderPaymentStatusChanged)
        assert event.new_status == "failed"
