"""Order cancellation, with stock returned to the catalog in the same Unit of Work."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from shared.config import get_settings
from shared.errors import ForbiddenError
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


def restore_stock(order: Order):
    """Give every ordered quantity back to its product."""
    repo = current_domain.repository_for(Product)
    for item in order.items:
        try:
            product = repo.get(str(item.product_id))
        except ObjectNotFoundError:
            logger.warning(
                "Cannot restore stock for missing product",
                order_id=str(order.id),
                product_id=str(item.product_id),
            )
            continue
        product.restore_stock(item.quantity)
        repo.add(product)

    logger.info("Stock restored", order_id=str(order.id), order_number=order.order_number)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not command.is_admin and not order.is_owned_by(command.cancelled_by):
            raise ForbiddenError("Not authorized to cancel this order")

        previous = order.cancel(
            reason=command.reason,
            by=command.cancelled_by,
            allow_from_ready=get_settings().ORDER_CANCEL_FROM_READY,
        )
        restore_stock(order)
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous,
            cancelled_by=str(command.cancelled_by),
        )
