"""Application tests for order status, cancellation, rating, notes, payment and queries."""

from datetime import timedelta

import pytest
from protean.utils.globals import current_domain
from shared.auth import AuthUser
from shared.config import get_settings
from shared.errors import ForbiddenError, InvalidStateError, InvalidTransitionError, NotFoundError
from storefront.cart.items import AddToCart
from storefront.order.cancellation import CancelOrder
from storefront.order.checkout import PlaceOrder
from storefront.order.feedback import RateOrder
from storefront.order.notes import AddOrderNote
from storefront.order.order import Order
from storefront.order.payment import UpdatePaymentStatus
from storefront.order.queries import OrderFilters, get_order_for, list_orders, order_stats
from storefront.order.status import UpdateOrderStatus
from storefront.product.product import Product
from storefront.shared.clock import utcnow

OWNER = "user-001"


def _product(stock=10, price=100.0):
    product = Product.create(
        name="Masala Chai",
        description="Spiced milk tea with cardamom and ginger",
        price=price,
        category="tea",
        stock_quantity=stock,
    )
    current_domain.repository_for(Product).add(product)
    return str(product.id)


def _place_order(user_id=OWNER, product_id=None, quantity=2, order_type="takeaway"):
    product_id = product_id or _product()
    current_domain.process(
        AddToCart(user_id=user_id, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )
    return current_domain.process(
        PlaceOrder(
            user_id=user_id,
            order_type=order_type,
            payment_method="cash",
            user_name="Asha Rahman",
            user_email="asha@example.com",
        ),
        asynchronous=False,
    )


def _advance(order_id, *statuses):
    for status in statuses:
        current_domain.process(
            UpdateOrderStatus(order_id=order_id, status=status, updated_by="staff-1"),
            asynchronous=False,
        )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


class TestUpdateOrderStatus:
    def test_advances_and_persists(self):
        order_id = _place_order()
        _advance(order_id, "confirmed", "preparing")
        order = _order(order_id)
        assert order.status == "preparing"
        assert str(order.assigned_to) == "staff-1"

    def test_invalid_transition(self):
        order_id = _place_order()
        with pytest.raises(InvalidTransitionError, match="Cannot transition from pending to ready"):
            _advance(order_id, "ready")
        assert _order(order_id).status == "pending"

    def test_staff_cancel_restores_stock(self):
        product_id = _product(stock=10)
        order_id = _place_order(product_id=product_id, quantity=3)
        _advance(order_id, "confirmed", "preparing", "ready")
        assert _stock(product_id) == 7

        current_domain.process(
            UpdateOrderStatus(order_id=order_id, status="cancelled", updated_by="staff-1", reason="No pickup"),
            asynchronous=False,
        )

        order = _order(order_id)
        assert order.status == "cancelled"
        assert order.cancellation_reason == "No pickup"
        assert _stock(product_id) == 10


class TestCancelOrder:
    def test_owner_cancels_and_stock_is_restored(self):
        product_id = _product(stock=10)
        order_id = _place_order(product_id=product_id, quantity=2)
        assert _stock(product_id) == 8

        current_domain.process(
            CancelOrder(order_id=order_id, reason="Changed my mind", cancelled_by=OWNER),
            asynchronous=False,
        )

        order = _order(order_id)
        assert order.status == "cancelled"
        assert order.cancelled_at is not None
        assert _stock(product_id) == 10

    def test_admin_cancels_any_order(self):
        order_id = _place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, reason="Kitchen closed", cancelled_by="admin-1", is_admin=True),
            asynchronous=False,
        )
        assert _order(order_id).status == "cancelled"

    def test_other_customer_cannot_cancel(self):
        order_id = _place_order()
        with pytest.raises(ForbiddenError):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Not mine", cancelled_by="user-999"),
                asynchronous=False,
            )

    def test_ready_order_not_cancellable_by_default(self):
        product_id = _product(stock=10)
        order_id = _place_order(product_id=product_id)
        _advance(order_id, "confirmed", "preparing", "ready")
        with pytest.raises(InvalidStateError):
            current_domain.process(
                CancelOrder(order_id=order_id, reason="Too slow", cancelled_by=OWNER),
                asynchronous=False,
            )
        assert _stock(product_id) == 8

    def test_ready_order_cancellable_when_configured(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "ORDER_CANCEL_FROM_READY", True)
        order_id = _place_order()
        _advance(order_id, "confirmed", "preparing", "ready")
        current_domain.process(
            CancelOrder(order_id=order_id, reason="Too slow", cancelled_by=OWNER),
            asynchronous=False,
        )
        assert _order(order_id).status == "cancelled"


class TestRateOrder:
    def test_owner_rates_completed_order(self):
        order_id = _place_order()
        _advance(order_id, "confirmed", "preparing", "ready", "completed")
        current_domain.process(RateOrder(order_id=order_id, user_id=OWNER, score=5, comment="Great"), asynchronous=False)
        assert _order(order_id).rating.score == 5

    def test_pending_order_cannot_be_rated(self):
        order_id = _place_order()
        with pytest.raises(InvalidStateError, match="Can only rate completed orders"):
            current_domain.process(RateOrder(order_id=order_id, user_id=OWNER, score=5), asynchronous=False)

    def test_only_owner_can_rate(self):
        order_id = _place_order()
        _advance(order_id, "confirmed", "preparing", "ready", "completed")
        with pytest.raises(NotFoundError):
            current_domain.process(RateOrder(order_id=order_id, user_id="user-999", score=1), asynchronous=False)


class TestNotesAndPayment:
    def test_add_note(self):
        order_id = _place_order()
        current_domain.process(AddOrderNote(order_id=order_id, content="Allergic to nuts", added_by="staff-1"), asynchronous=False)
        notes = _order(order_id).notes
        assert len(notes) == 1
        assert notes[0].content == "Allergic to nuts"

    def test_mark_paid(self):
        order_id = _place_order()
        current_domain.process(
            UpdatePaymentStatus(order_id=order_id, payment_status="paid", transaction_id="txn-42"),
            asynchronous=False,
        )
        order = _order(order_id)
        assert order.payment_status == "paid"
        assert order.payment_details.transaction_id == "txn-42"
        assert order.payment_details.paid_at is not None


class TestOrderQueries:
    def test_own_orders_newest_first(self):
        first = _place_order()
        second = _place_order()
        _place_order(user_id="user-002")

        orders, pagination = list_orders(OrderFilters(), owner_id=OWNER)

        assert [str(o.id) for o in orders] == [second, first]
        assert pagination["total"] == 2

    def test_status_filter(self):
        keep = _place_order()
        other = _place_order()
        _advance(other, "confirmed")

        orders, _ = list_orders(OrderFilters(status="pending"), owner_id=OWNER)
        assert [str(o.id) for o in orders] == [keep]

    def test_admin_listing_with_user_filter(self):
        _place_order()
        _place_order(user_id="user-002")
        orders, _ = list_orders(OrderFilters(user_id="user-002"))
        assert [str(o.user_id) for o in orders] == ["user-002"]

    def test_date_range(self):
        _place_order()
        orders, _ = list_orders(OrderFilters(start_date=utcnow() + timedelta(days=1)))
        assert orders == []

    def test_get_order_for_owner_and_admin(self):
        order_id = _place_order()
        assert str(get_order_for(AuthUser(id=OWNER), order_id).id) == order_id
        assert str(get_order_for(AuthUser(id="admin-1", role="admin"), order_id).id) == order_id
        with pytest.raises(ForbiddenError):
            get_order_for(AuthUser(id="user-999"), order_id)

    def test_stats(self):
        completed = _place_order()
        _advance(completed, "confirmed", "preparing", "ready", "completed")
        cancelled = _place_order()
        current_domain.process(CancelOrder(order_id=cancelled, reason="No", cancelled_by=OWNER), asynchronous=False)
        _place_order()

        stats = order_stats()

        assert stats["total_orders"] == 3
        assert stats["total_revenue"] == 400.0
        assert stats["completed_orders"] == 1
        assert stats["cancelled_orders"] == 1
