"""Staff-driven order status updates."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.cancellation import restore_stock
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    updated_by = Identifier()
    reason = String(max_length=500)  # Recorded when the new status is cancelled


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.update_status(command.status, by=command.updated_by, reason=command.reason)
        if order.status == OrderStatus.CANCELLED.value:
            restore_stock(order)
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous,
            new_status=order.status,
        )
