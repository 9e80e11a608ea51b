"""Order aggregate: an immutable snapshot of a cart plus a status state machine.

State Machine:
    pending → confirmed → preparing → ready → completed
    cancelled is reachable from pending, confirmed, preparing and ready.
    completed and cancelled are terminal.

The customer-facing cancel operation is narrower than the transition table:
it refuses ``ready`` orders unless the caller opts in (ORDER_CANCEL_FROM_READY).
Staff can still move a ready order to cancelled through update_status.
"""

import json
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from shared.errors import InvalidStateError, InvalidTransitionError
from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderNoteAdded,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderRated,
    OrderStatusChanged,
)
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_BANKING = "mobile-banking"
    ONLINE = "online"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial-refund"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which the cancel operation is allowed
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
}

_STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class OrderPricing:
    """Pricing block copied verbatim from the cart at checkout."""

    subtotal = Float(default=0.0, min_value=0.0)
    discount_code = String(max_length=50)
    discount_amount = Float(default=0.0, min_value=0.0)
    tax_rate = Float(default=0.0, min_value=0.0, max_value=100.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)


@storefront.value_object(part_of="Order")
class CustomerInfo:
    """Contact and delivery details captured at checkout time.

    Later profile edits by the user do not change an existing order.
    """

    name = String(required=True, min_length=2, max_length=50)
    email = String(max_length=254)
    phone = String(max_length=20)
    street = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    landmark = String(max_length=255)
    delivery_instructions = String(max_length=500)


@storefront.value_object(part_of="Order")
class PaymentDetails:
    transaction_id = String(max_length=255)
    gateway = String(max_length=50)
    paid_at = DateTime()
    refunded_at = DateTime()
    refund_amount = Float(min_value=0.0)


@storefront.value_object(part_of="Order")
class OrderRating:
    score = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)
    rated_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """Product snapshot: name, price and image as they were when ordered."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    customizations = Text()  # JSON array of {option, value, additional_price}
    notes = String(max_length=200)
    subtotal = Float(required=True, min_value=0.0)


@storefront.entity(part_of="Order")
class OrderNote:
    content = String(required=True, max_length=500)
    added_by = Identifier()
    added_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=16, unique=True)
    order_date = String(max_length=8)  # YYYYMMDD prefix of order_number
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    customer_info = ValueObject(CustomerInfo)
    order_type = String(required=True, choices=OrderType)
    table_number = Integer(min_value=1, max_value=100)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_details = ValueObject(PaymentDetails)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    special_instructions = String(max_length=500)
    estimated_prep_time = Integer(default=15, min_value=0)  # minutes
    actual_prep_time = Integer(min_value=0)  # minutes
    ordered_at = DateTime()
    confirmed_at = DateTime()
    preparing_at = DateTime()
    ready_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    rating = ValueObject(OrderRating)
    assigned_to = Identifier()
    cancellation_reason = String(max_length=500)
    notes = HasMany(OrderNote)

    @invariant.post
    def delivery_orders_need_an_address(self):
        if self.order_type != OrderType.DELIVERY.value:
            return
        info = self.customer_info
        if info is None or not info.street or not info.city:
            raise ValidationError({"customer_info": ["Delivery orders require a street and city"]})

    @invariant.post
    def dine_in_orders_need_a_table(self):
        if self.order_type == OrderType.DINE_IN.value and not self.table_number:
            raise ValidationError({"table_number": ["Dine-in orders require a table number"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        lines,
        pricing,
        customer_info,
        order_type,
        payment_method,
        table_number=None,
        special_instructions=None,
        estimated_prep_time=None,
    ):
        """Create a pending order from item snapshots and a pricing block.

        Args:
            lines: List of dicts with product_id, name, price, image, quantity,
                customizations (list) and notes.
            pricing: OrderPricing copied from the cart.
            customer_info: CustomerInfo captured at checkout.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = utcnow()
        items = [
            OrderItem(
                product_id=line["product_id"],
                name=line["name"],
                price=line["price"],
                image=line.get("image"),
                quantity=line["quantity"],
                customizations=json.dumps(line.get("customizations") or []),
                notes=line.get("notes"),
                subtotal=round_money(line["subtotal"]),
            )
            for line in lines
        ]

        order = cls(
            order_number=order_number,
            order_date=order_number[:8],
            user_id=user_id,
            pricing=pricing,
            customer_info=customer_info,
            order_type=order_type,
            table_number=table_number,
            payment_method=payment_method,
            special_instructions=special_instructions,
            estimated_prep_time=estimated_prep_time if estimated_prep_time is not None else 15,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            ordered_at=now,
        )
        for item in items:
            order.add_items(item)

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order_number,
                user_id=user_id,
                order_type=order_type,
                payment_method=payment_method,
                item_count=order.total_items,
                total=pricing.total,
                ordered_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def duration(self) -> int | None:
        """Minutes from ordering to completion."""
        if not self.ordered_at or not self.completed_at:
            return None
        return round((as_utc(self.completed_at) - as_utc(self.ordered_at)).total_seconds() / 60)

    def minutes_since_order(self, now=None) -> int:
        now = as_utc(now) or utcnow()
        return round((now - as_utc(self.ordered_at)).total_seconds() / 60)

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(f"Cannot transition from {current.value} to {target.value}")

    def _enter(self, target, by, now):
        setattr(self, _STATUS_TIMESTAMPS[target], now)
        self.status = target.value
        if by:
            self.assigned_to = by

    def update_status(self, new_status, by=None, reason=None, now=None) -> str:
        """Advance along the transition table. Returns the previous status.

        Moving to cancelled here is the staff path; the caller restores stock
        exactly as for ``cancel``.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None
        self._assert_can_transition(target)

        previous = self.status
        now = now or utcnow()
        with atomic_change(self):
            self._enter(target, by, now)
            if target == OrderStatus.CANCELLED and reason:
                self.cancellation_reason = reason.strip()
            if target == OrderStatus.COMPLETED and self.preparing_at:
                self.actual_prep_time = round((as_utc(now) - as_utc(self.preparing_at)).total_seconds() / 60)

        self.raise_(
            OrderStatusChanged(
                order_id=self.id,
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                changed_by=by,
                changed_at=now,
            )
        )
        if target == OrderStatus.CANCELLED:
            self.raise_(
                OrderCancelled(
                    order_id=self.id,
                    order_number=self.order_number,
                    previous_status=previous,
                    reason=self.cancellation_reason or "Cancelled by staff",
                    cancelled_by=by,
                    cancelled_at=now,
                )
            )
        return previous

    def cancel(self, reason, by=None, allow_from_ready=False, now=None) -> str:
        """Cancel the order. The caller restores stock for every item."""
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["Cancellation reason is required"]})

        current = OrderStatus(self.status)
        cancellable = _CANCELLABLE_STATES | ({OrderStatus.READY} if allow_from_ready else set())
        if current not in cancellable:
            raise InvalidStateError("Order cannot be cancelled at this stage")

        previous = self.status
        now = now or utcnow()
        with atomic_change(self):
            self._enter(OrderStatus.CANCELLED, by, now)
            self.cancellation_reason = reason.strip()

        self.raise_(
            OrderCancelled(
                order_id=self.id,
                order_number=self.order_number,
                previous_status=previous,
                reason=self.cancellation_reason,
                cancelled_by=by,
                cancelled_at=now,
            )
        )
        return previous

    # -------------------------------------------------------------------
    # Feedback, notes and payment
    # -------------------------------------------------------------------
    def add_rating(self, score, comment=None):
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise InvalidStateError("Can only rate completed orders")

        now = utcnow()
        self.rating = OrderRating(score=score, comment=comment, rated_at=now)

        self.raise_(OrderRated(order_id=self.id, score=score, rated_at=now))

    def add_note(self, content, by=None):
        """Append a staff note. Notes are never edited or removed."""
        now = utcnow()
        self.add_notes(OrderNote(content=content, added_by=by, added_at=now))

        self.raise_(OrderNoteAdded(order_id=self.id, added_by=by, added_at=now))

    def update_payment_status(self, new_status, transaction_id=None, gateway=None, refund_amount=None):
        try:
            target = PaymentStatus(new_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {new_status}"]}) from None

        now = utcnow()
        details = self.payment_details
        paid_at = details.paid_at if details else None
        refunded_at = details.refunded_at if details else None
        if target == PaymentStatus.PAID:
            paid_at = now
        elif target in (PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND):
            refunded_at = now

        previous = self.payment_status
        with atomic_change(self):
            self.payment_status = target.value
            self.payment_details = PaymentDetails(
                transaction_id=transaction_id or (details.transaction_id if details else None),
                gateway=gateway or (details.gateway if details else None),
                paid_at=paid_at,
                refunded_at=refunded_at,
                refund_amount=refund_amount if refund_amount is not None else (details.refund_amount if details else None),
            )

        self.raise_(
            OrderPaymentStatusChanged(
                order_id=self.id,
                previous_status=previous,
                new_status=target.value,
                transaction_id=self.payment_details.transaction_id,
                refund_amount=self.payment_details.refund_amount,
            )
        )
