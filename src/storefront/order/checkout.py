"""PlaceOrder: turn the user's cart into an order.

The handler runs as one Unit of Work. Every product is re-read and checked
before anything is written; then the order number is allocated, the order
is built from snapshots, stock is reserved and the cart is cleared. Any
failure discards all of it.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shared.errors import NotFoundError
from storefront.cart.cart import Cart
from storefront.cart.pricing import line_total, normalize_customizations
from storefront.domain import storefront
from storefront.order.order import CustomerInfo, Order, OrderPricing
from storefront.order.sequence import allocate_order_number
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    order_type = String(required=True, max_length=20)
    payment_method = String(required=True, max_length=20)
    customer_info = Text()  # JSON: name, email, phone, street, city, state, zip_code, landmark, delivery_instructions
    table_number = Integer()
    special_instructions = String(max_length=500)
    user_name = String(max_length=50)  # Fallback for customer_info.name
    user_email = String(max_length=254)  # Fallback for customer_info.email


def _customer_info(command) -> CustomerInfo:
    info = json.loads(command.customer_info) if command.customer_info else {}
    info = {key: value for key, value in info.items() if value not in (None, "")}
    info.setdefault("name", command.user_name)
    info.setdefault("email", command.user_email)
    return CustomerInfo(**info)


def _pricing_from(cart: Cart) -> OrderPricing:
    return OrderPricing(
        subtotal=cart.total_price,
        discount_code=cart.discount.code or None,
        discount_amount=cart.discount.amount,
        tax_rate=cart.tax.rate,
        tax_amount=cart.tax.amount,
        delivery_fee=cart.delivery_fee,
        total=cart.final_total,
    )


def _load_products(cart: Cart) -> tuple[dict, dict]:
    """Live product per product id in the cart, checked against the total requested."""
    repo = current_domain.repository_for(Product)
    products = {}
    requested = {}
    for item in cart.items:
        product_id = str(item.product_id)
        requested[product_id] = requested.get(product_id, 0) + item.quantity
        if product_id not in products:
            try:
                products[product_id] = repo.get(product_id)
            except ObjectNotFoundError:
                raise NotFoundError(f"Product {product_id} not found") from None

    for product_id, quantity in requested.items():
        products[product_id].ensure_available(quantity)
    return products, requested


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.get_or_create(command.user_id)
        if cart.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})

        products, requested = _load_products(cart)
        customer_info = _customer_info(command)

        lines = []
        for item in cart.items:
            product = products[str(item.product_id)]
            price = product.effective_price()
            customizations = normalize_customizations(item.customizations)
            lines.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "price": price,
                    "image": product.image,
                    "quantity": item.quantity,
                    "customizations": customizations,
                    "notes": item.notes,
                    "subtotal": line_total(price, item.quantity, customizations),
                }
            )

        order = Order.place(
            order_number=allocate_order_number(),
            user_id=command.user_id,
            lines=lines,
            pricing=_pricing_from(cart),
            customer_info=customer_info,
            order_type=command.order_type,
            payment_method=command.payment_method,
            table_number=command.table_number,
            special_instructions=command.special_instructions,
        )

        product_repo = current_domain.repository_for(Product)
        for product_id, quantity in requested.items():
            product = products[product_id]
            product.reserve_stock(quantity)
            product_repo.add(product)

        current_domain.repository_for(Order).add(order)

        cart.clear(reason="checkout")
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(command.user_id),
            total=order.pricing.total,
            item_count=order.total_items,
        )
        return str(order.id)
