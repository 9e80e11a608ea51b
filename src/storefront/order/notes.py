"""Staff notes on an order (append-only)."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class AddOrderNote:
    order_id = Identifier(required=True)
    content = String(required=True, max_length=500)
    added_by = Identifier()


@storefront.command_handler(part_of=Order)
class AddOrderNoteHandler:
    @handle(AddOrderNote)
    def add_order_note(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_note(content=command.content, by=command.added_by)
        repo.add(order)
