"""FastAPI routes for the Storefront domain: products, cart and orders."""

import json
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from shared.auth import AdminUser, CurrentUser
from shared.config import get_settings
from shared.envelope import success
from shared.jsontext import dumps_json
from storefront.api.schemas import (
    AddCartItemRequest,
    AddOrderNoteRequest,
    AddReviewRequest,
    ApplyDiscountRequest,
    CancelOrderRequest,
    CategoryName,
    CreateProductRequest,
    OrderStatusName,
    OrderTypeName,
    PlaceOrderRequest,
    RateOrderRequest,
    RemoveCartItemRequest,
    SetDeliveryFeeRequest,
    SetTaxRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentRequest,
    UpdateProductRequest,
)
from storefront.api.serializers import cart_data, cart_summary, order_data, product_data
from storefront.cart.cart import Cart
from storefront.cart.charges import ApplyDiscount, ClearCart, RemoveDiscount, SetDeliveryFee, SetTaxRate
from storefront.cart.expiry import PurgeExpiredCarts
from storefront.cart.items import AddToCart, RemoveCartItem, UpdateCartItem
from storefront.order.cancellation import CancelOrder
from storefront.order.checkout import PlaceOrder
from storefront.order.feedback import RateOrder
from storefront.order.notes import AddOrderNote
from storefront.order.order import Order
from storefront.order.payment import UpdatePaymentStatus
from storefront.order.queries import OrderFilters, get_order_for, list_orders, order_stats
from storefront.order.status import UpdateOrderStatus
from storefront.product.management import CreateProduct, DeactivateProduct, UpdateProduct
from storefront.product.product import Product
from storefront.product.queries import ProductFilters, catalog_stats, category_summary, get_product, list_products
from storefront.product.reviews import AddProductReview

ProductSort = Literal["name", "price", "rating", "created_at", "preparation_time"]


def _threshold() -> int:
    return get_settings().LOW_STOCK_THRESHOLD


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/api/products", tags=["products"])


@product_router.get("")
async def list_products_endpoint(
    q: str | None = Query(None, min_length=1, max_length=100),
    category: CategoryName | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    in_stock: bool | None = None,
    featured: bool | None = None,
    vegetarian: bool | None = None,
    sort: ProductSort = "created_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
):
    filters = ProductFilters(
        q=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
        vegetarian=vegetarian,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )
    products, pagination = list_products(filters)
    threshold = _threshold()
    return success(
        {
            "products": [product_data(p, threshold, include_reviews=False) for p in products],
            "pagination": pagination,
        }
    )


@product_router.get("/categories/list")
async def list_categories():
    return success({"categories": category_summary()})


@product_router.get("/featured/list")
async def list_featured(limit: int = Query(8, ge=1, le=50)):
    products = current_domain.repository_for(Product).find_featured(limit=limit)
    threshold = _threshold()
    return success({"products": [product_data(p, threshold, include_reviews=False) for p in products]})


@product_router.get("/stats/overview")
async def product_stats(admin: AdminUser):
    return success(catalog_stats(_threshold()))


@product_router.get("/{product_id}")
async def get_product_endpoint(product_id: str):
    return success({"product": product_data(get_product(product_id), _threshold())})


@product_router.post("", status_code=201)
async def create_product(body: CreateProductRequest, admin: AdminUser):
    fields = body.model_dump(exclude_none=True)
    for name in ("images", "ingredients", "tags", "nutritional_info"):
        if name in fields:
            fields[name] = dumps_json(fields[name])
    command = CreateProduct(created_by=admin.id, **fields)
    product_id = current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).get(product_id)
    return success({"product": product_data(product, _threshold())}, message="Product created successfully")


@product_router.put("/{product_id}")
async def update_product(product_id: str, body: UpdateProductRequest, admin: AdminUser):
    changes = body.model_dump(exclude_unset=True, mode="json")
    command = UpdateProduct(product_id=product_id, changes=json.dumps(changes), updated_by=admin.id)
    current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).get(product_id)
    return success({"product": product_data(product, _threshold())}, message="Product updated successfully")


@product_router.delete("/{product_id}")
async def delete_product(product_id: str, admin: AdminUser):
    command = DeactivateProduct(product_id=product_id, deactivated_by=admin.id)
    current_domain.process(command, asynchronous=False)
    return success(message="Product deleted successfully")


@product_router.post("/{product_id}/reviews", status_code=201)
async def add_review(product_id: str, body: AddReviewRequest, user: CurrentUser):
    command = AddProductReview(
        product_id=product_id,
        user_id=user.id,
        user_name=user.name,
        rating=body.rating,
        comment=body.comment,
    )
    rating = current_domain.process(command, asynchronous=False)
    return success({"rating": rating}, message="Review added successfully")


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/api/cart", tags=["cart"])


def _cart_response(user_id: str, message: str | None = None) -> dict:
    cart = current_domain.repository_for(Cart).get_or_create(user_id)
    return success({"cart": cart_data(cart)}, message=message)


def _customizations_json(customizations) -> str:
    return json.dumps([c.model_dump() for c in customizations])


@cart_router.get("")
async def get_cart(user: CurrentUser):
    return _cart_response(user.id)


@cart_router.get("/summary")
async def get_cart_summary(user: CurrentUser):
    cart = current_domain.repository_for(Cart).get_or_create(user.id)
    return success({"summary": cart_summary(cart)})


@cart_router.post("/items")
async def add_cart_item(body: AddCartItemRequest, user: CurrentUser):
    command = AddToCart(
        user_id=user.id,
        product_id=body.product_id,
        quantity=body.quantity,
        customizations=_customizations_json(body.customizations),
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user.id, message="Item added to cart successfully")


@cart_router.put("/items/{product_id}")
async def update_cart_item(product_id: str, body: UpdateCartItemRequest, user: CurrentUser):
    command = UpdateCartItem(
        user_id=user.id,
        product_id=product_id,
        quantity=body.quantity,
        customizations=_customizations_json(body.customizations),
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user.id, message="Cart updated successfully")


@cart_router.delete("/items/{product_id}")
async def remove_cart_item(product_id: str, user: CurrentUser, body: RemoveCartItemRequest | None = None):
    customizations = body.customizations if body else []
    command = RemoveCartItem(
        user_id=user.id,
        product_id=product_id,
        customizations=_customizations_json(customizations),
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user.id, message="Item removed from cart successfully")


@cart_router.delete("")
async def clear_cart(user: CurrentUser):
    current_domain.process(ClearCart(user_id=user.id), asynchronous=False)
    return _cart_response(user.id, message="Cart cleared successfully")


@cart_router.post("/discount")
async def apply_discount(body: ApplyDiscountRequest, user: CurrentUser):
    command = ApplyDiscount(
        user_id=user.id,
        code=body.code,
        amount=body.amount,
        percentage=body.percentage,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user.id, message="Discount applied successfully")


@cart_router.delete("/discount")
async def remove_discount(user: CurrentUser):
    current_domain.process(RemoveDiscount(user_id=user.id), asynchronous=False)
    return _cart_response(user.id, message="Discount removed successfully")


@cart_router.post("/tax")
async def set_tax(body: SetTaxRequest, user: CurrentUser):
    current_domain.process(SetTaxRate(user_id=user.id, rate=body.rate), asynchronous=False)
    return _cart_response(user.id, message="Tax rate updated successfully")


@cart_router.post("/delivery")
async def set_delivery_fee(body: SetDeliveryFeeRequest, user: CurrentUser):
    current_domain.process(SetDeliveryFee(user_id=user.id, fee=body.fee), asynchronous=False)
    return _cart_response(user.id, message="Delivery fee updated successfully")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/api/orders", tags=["orders"])


def _order_response(order_id: str, message: str | None = None) -> dict:
    order = current_domain.repository_for(Order).get(order_id)
    return success({"order": order_data(order)}, message=message)


@order_router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, user: CurrentUser):
    info = body.customer_info
    flattened = {"name": info.name, "email": info.email, "phone": info.phone}
    if info.address:
        flattened.update(info.address.model_dump())
    command = PlaceOrder(
        user_id=user.id,
        order_type=body.order_type,
        payment_method=body.payment_method,
        customer_info=json.dumps(flattened),
        table_number=body.table_number,
        special_instructions=body.special_instructions,
        user_name=user.name,
        user_email=user.email,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Order created successfully")


@order_router.get("")
async def list_my_orders(
    user: CurrentUser,
    status: OrderStatusName | None = None,
    order_type: OrderTypeName | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    filters = OrderFilters(
        status=status,
        order_type=order_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    orders, pagination = list_orders(filters, owner_id=user.id)
    return success({"orders": [order_data(o) for o in orders], "pagination": pagination})


@order_router.get("/all")
async def list_all_orders(
    admin: AdminUser,
    status: OrderStatusName | None = None,
    order_type: OrderTypeName | None = None,
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    filters = OrderFilters(
        status=status,
        order_type=order_type,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    orders, pagination = list_orders(filters)
    return success({"orders": [order_data(o) for o in orders], "pagination": pagination})


@order_router.get("/stats/overview")
async def get_order_stats(admin: AdminUser, start_date: datetime | None = None, end_date: datetime | None = None):
    return success(order_stats(start_date, end_date))


@order_router.get("/{order_id}")
async def get_order(order_id: str, user: CurrentUser):
    return success({"order": order_data(get_order_for(user, order_id))})


@order_router.put("/{order_id}/status")
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest, admin: AdminUser):
    command = UpdateOrderStatus(order_id=order_id, status=body.status, updated_by=admin.id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Order status updated successfully")


@order_router.put("/{order_id}/cancel")
async def cancel_order(order_id: str, body: CancelOrderRequest, user: CurrentUser):
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=user.id,
        is_admin=user.is_admin,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Order cancelled successfully")


@order_router.post("/{order_id}/rating")
async def rate_order(order_id: str, body: RateOrderRequest, user: CurrentUser):
    command = RateOrder(order_id=order_id, user_id=user.id, score=body.score, comment=body.comment)
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Rating added successfully")


@order_router.post("/{order_id}/notes")
async def add_order_note(order_id: str, body: AddOrderNoteRequest, admin: AdminUser):
    command = AddOrderNote(order_id=order_id, content=body.content, added_by=admin.id)
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Note added successfully")


@order_router.put("/{order_id}/payment")
async def update_payment(order_id: str, body: UpdatePaymentRequest, admin: AdminUser):
    command = UpdatePaymentStatus(
        order_id=order_id,
        payment_status=body.payment_status,
        transaction_id=body.transaction_id,
        gateway=body.gateway,
        refund_amount=body.refund_amount,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(order_id, message="Payment status updated successfully")


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@maintenance_router.post("/carts/purge-expired")
async def purge_expired_carts(admin: AdminUser):
    purged = current_domain.process(PurgeExpiredCarts(), asynchronous=False)
    return success({"purged": purged})
