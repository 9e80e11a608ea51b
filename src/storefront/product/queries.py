"""Catalog read side: filtered listings, category summary and admin statistics."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from shared.errors import NotFoundError
from shared.jsontext import loads_json
from shared.querying import paginate
from storefront.product.product import Category, Product
from storefront.shared.clock import as_utc

_SORT_KEYS = {
    "name": lambda p: (p.name or "").lower(),
    "price": lambda p: p.price or 0.0,
    "rating": lambda p: p.rating.average if p.rating else 0.0,
    "created_at": lambda p: as_utc(p.created_at).timestamp() if p.created_at else 0.0,
    "preparation_time": lambda p: p.preparation_time or 0,
}


@dataclass
class ProductFilters:
    q: str | None = None
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    in_stock: bool | None = None
    featured: bool | None = None
    vegetarian: bool | None = None
    sort: str = "created_at"
    order: str = "desc"
    page: int = 1
    limit: int = 12


def _matches_text(product: Product, q: str) -> bool:
    needle = q.lower()
    haystack = [product.name or "", product.description or ""]
    haystack.extend(str(tag) for tag in loads_json(product.tags, []))
    return any(needle in text.lower() for text in haystack)


def _matches(product: Product, filters: ProductFilters) -> bool:
    if filters.q and not _matches_text(product, filters.q):
        return False
    if filters.category and product.category != filters.category:
        return False
    if filters.min_price is not None and product.price < filters.min_price:
        return False
    if filters.max_price is not None and product.price > filters.max_price:
        return False
    if filters.in_stock is not None and bool(product.in_stock) != filters.in_stock:
        return False
    if filters.featured is not None and bool(product.is_featured) != filters.featured:
        return False
    if filters.vegetarian is not None and bool(product.is_vegetarian) != filters.vegetarian:
        return False
    return True


def list_products(filters: ProductFilters) -> tuple[list[Product], dict]:
    """Active products matching ``filters``, sorted and paginated."""
    products = [p for p in current_domain.repository_for(Product).find_active() if _matches(p, filters)]
    sort_key = _SORT_KEYS.get(filters.sort, _SORT_KEYS["created_at"])
    products.sort(key=sort_key, reverse=filters.order != "asc")
    return paginate(products, filters.page, filters.limit)


def get_product(product_id: str, include_inactive: bool = False) -> Product:
    """Fetch a product; inactive products are hidden unless ``include_inactive``."""
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_active and not include_inactive:
        raise NotFoundError("Product not found")
    return product


def category_summary() -> list[dict]:
    """Active product counts per category, busiest first."""
    counts = {}
    for product in current_domain.repository_for(Product).find_active():
        counts[product.category] = counts.get(product.category, 0) + 1
    summary = [{"category": category, "count": count} for category, count in counts.items()]
    summary.sort(key=lambda entry: (-entry["count"], entry["category"]))
    return summary


def catalog_stats(threshold: int) -> dict:
    products = current_domain.repository_for(Product).find_all()
    active = [p for p in products if p.is_active]

    by_category = []
    for category in Category:
        members = [p for p in active if p.category == category.value]
        if not members:
            continue
        by_category.append(
            {
                "category": category.value,
                "count": len(members),
                "average_price": round(sum(p.price for p in members) / len(members), 2),
            }
        )

    return {
        "total_products": len(products),
        "active_products": len(active),
        "inactive_products": len(products) - len(active),
        "out_of_stock": sum(1 for p in active if not p.in_stock or not p.stock_quantity),
        "low_stock": sum(1 for p in active if p.availability(threshold) == "low-stock"),
        "featured_products": sum(1 for p in active if p.is_featured),
        "by_category": by_category,
    }
