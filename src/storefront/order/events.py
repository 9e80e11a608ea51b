"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    order_type = String(required=True)
    payment_method = String(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    ordered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = Identifier()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its stock goes back to the catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    cancelled_by = Identifier()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRated:
    __version__ = 1

    order_id = Identifier(required=True)
    score = Integer(required=True)
    rated_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderNoteAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    added_by = Identifier()
    added_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    transaction_id = String()
    refund_amount = Float()
