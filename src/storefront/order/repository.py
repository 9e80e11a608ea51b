"""Repository for the Order aggregate."""

from shared.querying import fetch_all
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_all(self) -> list[Order]:
        return fetch_all(self._dao)

    def find_for_user(self, user_id) -> list[Order]:
        return fetch_all(self._dao, user_id=str(user_id))

    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first
