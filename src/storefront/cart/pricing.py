"""Cart totals engine: pure functions over line items.

Totals are derived data. The Cart aggregate calls ``compute_totals`` after
every mutation and its invariant re-runs it to reject inconsistent state.
"""

import json
from typing import NamedTuple

from storefront.shared.money import round_money


class CartTotals(NamedTuple):
    total_items: int
    total_price: float
    discount_amount: float
    subtotal: float
    tax_amount: float
    final_total: float


def normalize_customizations(customizations) -> list[dict]:
    """Canonical form of a customization list; order is preserved."""
    if isinstance(customizations, str):
        customizations = json.loads(customizations) if customizations else []
    return [
        {
            "option": c.get("option"),
            "value": c.get("value"),
            "additional_price": round_money(c.get("additional_price") or 0.0),
        }
        for c in customizations or []
    ]


def customization_key(customizations) -> str:
    """Serialized customization list; two lines with different keys are distinct."""
    return json.dumps(normalize_customizations(customizations), sort_keys=True)


def unit_price_with_extras(price, customizations) -> float:
    extras = sum(c["additional_price"] for c in normalize_customizations(customizations))
    return round_money((price or 0.0) + extras)


def line_total(price, quantity, customizations) -> float:
    return round_money(unit_price_with_extras(price, customizations) * quantity)


def discount_amount_for(total_price, amount=0.0, percentage=0.0) -> float:
    """A percentage discount wins over a flat amount."""
    if percentage and percentage > 0:
        return round_money(total_price * percentage / 100)
    return round_money(amount or 0.0)


def compute_totals(items, discount_amount=0.0, discount_percentage=0.0, tax_rate=0.0, delivery_fee=0.0) -> CartTotals:
    """Totals for ``items`` (anything with price, quantity and customizations)."""
    total_items = sum(item.quantity for item in items)
    total_price = round_money(sum(line_total(item.price, item.quantity, item.customizations) for item in items))
    discount = discount_amount_for(total_price, discount_amount, discount_percentage)
    subtotal = round_money(max(0.0, total_price - discount))
    tax_amount = round_money(subtotal * (tax_rate or 0.0) / 100)
    final_total = round_money(subtotal + tax_amount + (delivery_fee or 0.0))
    return CartTotals(total_items, total_price, discount, subtotal, tax_amount, final_total)
