"""Payment status bookkeeping. Payments are taken outside this service; staff record the outcome."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=20)
    transaction_id = String(max_length=255)
    gateway = String(max_length=50)
    refund_amount = Float(min_value=0.0)


@storefront.command_handler(part_of=Order)
class UpdatePaymentStatusHandler:
    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_payment_status(
            command.payment_status,
            transaction_id=command.transaction_id,
            gateway=command.gateway,
            refund_amount=command.refund_amount,
        )
        repo.add(order)

        logger.info(
            "Payment status updated",
            order_id=str(order.id),
            payment_status=order.payment_status,
        )
