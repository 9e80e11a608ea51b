"""Repository for the Product aggregate."""

from shared.querying import fetch_all
from storefront.domain import storefront
from storefront.product.product import Product


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_all(self) -> list[Product]:
        """Every product, active or not."""
        return fetch_all(self._dao)

    def find_active(self) -> list[Product]:
        return fetch_all(self._dao, is_active=True)

    def find_featured(self, limit: int = 8) -> list[Product]:
        featured = [p for p in self.find_active() if p.is_featured]
        featured.sort(key=lambda p: (p.rating.average if p.rating else 0.0), reverse=True)
        return featured[:limit]
