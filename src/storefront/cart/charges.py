"""Cart discount, tax and delivery charges, and clearing the cart."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.command(part_of="Cart")
class ApplyDiscount:
    user_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    amount = Float(default=0.0, min_value=0.0)
    percentage = Float(default=0.0, min_value=0.0, max_value=100.0)


@storefront.command(part_of="Cart")
class RemoveDiscount:
    user_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class SetTaxRate:
    user_id = Identifier(required=True)
    rate = Float(required=True, min_value=0.0, max_value=100.0)


@storefront.command(part_of="Cart")
class SetDeliveryFee:
    user_id = Identifier(required=True)
    fee = Float(required=True, min_value=0.0)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class CartChargesHandler:
    @handle(ApplyDiscount)
    def apply_discount(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.apply_discount(code=command.code, amount=command.amount, percentage=command.percentage)
        repo.save(cart)

    @handle(RemoveDiscount)
    def remove_discount(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.remove_discount()
        repo.save(cart)

    @handle(SetTaxRate)
    def set_tax_rate(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.set_tax_rate(command.rate)
        repo.save(cart)

    @handle(SetDeliveryFee)
    def set_delivery_fee(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.set_delivery_fee(command.fee)
        repo.save(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.clear()
        repo.save(cart)
