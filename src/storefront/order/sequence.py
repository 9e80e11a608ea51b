"""Daily order number sequence.

Order numbers are ``YYYYMMDD`` followed by a zero-padded daily counter
(``202610190001``). The counter lives in its own aggregate, one per day,
and is incremented inside the checkout unit of work, so an order number is
only consumed when the order is actually persisted.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from shared.querying import fetch_all
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.shared.clock import utcnow

SEQUENCE_WIDTH = 4


def format_order_number(day: str, value: int) -> str:
    return f"{day}{value:0{SEQUENCE_WIDTH}d}"


@storefront.aggregate
class OrderSequence:
    day = String(identifier=True, max_length=8)
    last_value = Integer(default=0, min_value=0)

    def next_value(self) -> int:
        self.last_value = (self.last_value or 0) + 1
        return self.last_value


def _last_issued(day: str) -> int:
    """Trailing counter of the lexicographically-last order number for ``day``."""
    numbers = sorted(order.order_number for order in fetch_all(current_domain.repository_for(Order)._dao, order_date=day))
    if not numbers:
        return 0
    return int(numbers[-1][len(day) :])


def allocate_order_number(now=None) -> str:
    """Reserve the next order number for the day of ``now``."""
    day = (now or utcnow()).strftime("%Y%m%d")
    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(day)
    except ObjectNotFoundError:
        sequence = OrderSequence(day=day, last_value=_last_issued(day))

    value = sequence.next_value()
    repo.add(sequence)
    return format_order_number(day, value)
