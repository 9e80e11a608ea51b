"""Customer rating of a completed order."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from shared.errors import NotFoundError
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RateOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    score = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)


@storefront.command_handler(part_of=Order)
class RateOrderHandler:
    @handle(RateOrder)
    def rate_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        # Only the customer who placed the order can rate it
        if not order.is_owned_by(command.user_id):
            raise NotFoundError("Order not found")

        order.add_rating(score=command.score, comment=command.comment)
        repo.add(order)
