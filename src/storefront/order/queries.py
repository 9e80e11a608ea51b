"""Order read side: filtered history, access checks and admin statistics."""

from dataclasses import dataclass
from datetime import datetime

from protean.utils.globals import current_domain

from shared.auth import AuthUser
from shared.errors import ForbiddenError
from shared.querying import paginate
from storefront.order.order import Order, OrderStatus, OrderType
from storefront.shared.clock import as_utc
from storefront.shared.money import round_money


@dataclass
class OrderFilters:
    status: str | None = None
    order_type: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    user_id: str | None = None
    page: int = 1
    limit: int = 10


def _in_range(order: Order, start: datetime | None, end: datetime | None) -> bool:
    ordered_at = as_utc(order.ordered_at)
    if start and ordered_at < as_utc(start):
        return False
    if end and ordered_at > as_utc(end):
        return False
    return True


def _matches(order: Order, filters: OrderFilters) -> bool:
    if filters.status and order.status != filters.status:
        return False
    if filters.order_type and order.order_type != filters.order_type:
        return False
    if filters.user_id and str(order.user_id) != str(filters.user_id):
        return False
    return _in_range(order, filters.start_date, filters.end_date)


def list_orders(filters: OrderFilters, owner_id: str | None = None) -> tuple[list[Order], dict]:
    """Orders newest first; restricted to ``owner_id`` when given."""
    repo = current_domain.repository_for(Order)
    orders = repo.find_for_user(owner_id) if owner_id else repo.find_all()
    orders = [order for order in orders if _matches(order, filters)]
    orders.sort(key=lambda order: (as_utc(order.ordered_at), order.order_number), reverse=True)
    return paginate(orders, filters.page, filters.limit)


def get_order_for(user: AuthUser, order_id: str) -> Order:
    """The order, if ``user`` owns it or is an admin."""
    order = current_domain.repository_for(Order).get(order_id)
    if not user.is_admin and not order.is_owned_by(user.id):
        raise ForbiddenError("Not authorized to access this order")
    return order


def order_stats(start_date: datetime | None = None, end_date: datetime | None = None) -> dict:
    orders = [o for o in current_domain.repository_for(Order).find_all() if _in_range(o, start_date, end_date)]
    billable = [o for o in orders if o.status != OrderStatus.CANCELLED.value]
    revenue = round_money(sum(o.pricing.total for o in billable if o.pricing))

    return {
        "total_orders": len(orders),
        "total_revenue": revenue,
        "average_order_value": round_money(revenue / len(billable)) if billable else 0.0,
        "completed_orders": sum(1 for o in orders if o.status == OrderStatus.COMPLETED.value),
        "cancelled_orders": sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value),
        "by_status": {s.value: sum(1 for o in orders if o.status == s.value) for s in OrderStatus},
        "by_order_type": {t.value: sum(1 for o in orders if o.order_type == t.value) for t in OrderType},
    }
