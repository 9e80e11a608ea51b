"""Cart line items: add, change quantity, remove."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shared.errors import NotFoundError
from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.product.product import Product


def _customizations(command):
    if not command.customizations:
        return []
    return json.loads(command.customizations)


def _load_product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        raise NotFoundError("Product not found") from None


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, max_value=50)
    customizations = Text()  # JSON array of {option, value, additional_price}
    notes = String(max_length=200)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0, max_value=50)
    customizations = Text()


@storefront.command(part_of="Cart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customizations = Text()


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = _load_product(command.product_id)
        product.ensure_available(command.quantity)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.add_item(
            product_id=str(product.id),
            quantity=command.quantity,
            price=product.effective_price(),
            customizations=_customizations(command),
            notes=command.notes,
        )
        repo.save(cart)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        if command.quantity > 0:
            _load_product(command.product_id).ensure_available(command.quantity)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.update_item_quantity(
            product_id=command.product_id,
            quantity=command.quantity,
            customizations=_customizations(command),
        )
        repo.save(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.remove_item(product_id=command.product_id, customizations=_customizations(command))
        repo.save(cart)
