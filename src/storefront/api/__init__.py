"""Storefront domain API package."""

from storefront.api.routes import cart_router, maintenance_router, order_router, product_router

__all__ = ["product_router", "cart_router", "order_router", "maintenance_router"]
