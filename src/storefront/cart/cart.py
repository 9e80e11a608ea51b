"""Cart aggregate: one per user, keyed by the user's id.

Totals (total_items, total_price, tax amount, final_total) are derived from
the line items and charges. Every mutator recomputes them, and the
``totals_must_match_items`` invariant rejects any state where they drift.
"""

from datetime import timedelta

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from shared.errors import NotFoundError
from storefront.cart.events import (
    CartChargesUpdated,
    CartCleared,
    CartDiscountApplied,
    CartDiscountRemoved,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from storefront.cart.pricing import (
    compute_totals,
    customization_key,
    line_total,
    normalize_customizations,
)
from storefront.domain import storefront
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import money_equal, round_money

DEFAULT_CART_TTL_DAYS = 7
MAX_LINE_QUANTITY = 50


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Cart")
class Discount:
    code = String(max_length=50, default="")
    amount = Float(default=0.0, min_value=0.0)
    percentage = Float(default=0.0, min_value=0.0, max_value=100.0)


@storefront.value_object(part_of="Cart")
class Tax:
    rate = Float(default=0.0, min_value=0.0, max_value=100.0)
    amount = Float(default=0.0, min_value=0.0)


def _no_discount():
    return Discount(code="", amount=0.0, percentage=0.0)


def _no_tax():
    return Tax(rate=0.0, amount=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    price = Float(required=True, min_value=0.0)  # unit price captured when added
    customizations = Text()  # canonical JSON: [{option, value, additional_price}]
    notes = String(max_length=200)
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return line_total(self.price, self.quantity, self.customizations)

    def matches(self, product_id, key) -> bool:
        return str(self.product_id) == str(product_id) and (self.customizations or "[]") == key


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate
class Cart:
    user_id = Identifier(identifier=True)
    items = HasMany(CartItem)
    total_items = Integer(default=0)
    total_price = Float(default=0.0)
    discount = ValueObject(Discount)
    tax = ValueObject(Tax)
    delivery_fee = Float(default=0.0, min_value=0.0)
    final_total = Float(default=0.0)
    session_id = String(max_length=255)
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_must_match_items(self):
        expected = self._expected_totals()
        tax_amount = self.tax.amount if self.tax else 0.0
        discount_amount = self.discount.amount if self.discount else 0.0
        if (
            self.total_items != expected.total_items
            or not money_equal(self.total_price, expected.total_price)
            or not money_equal(discount_amount, expected.discount_amount)
            or not money_equal(tax_amount, expected.tax_amount)
            or not money_equal(self.final_total, expected.final_total)
        ):
            raise ValidationError({"totals": ["Cart totals must be derived from the line items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, session_id=None):
        now = utcnow()
        return cls(
            user_id=user_id,
            session_id=session_id,
            discount=_no_discount(),
            tax=_no_tax(),
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(days=DEFAULT_CART_TTL_DAYS),
        )

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> float:
        discount_amount = self.discount.amount if self.discount else 0.0
        return round_money(max(0.0, (self.total_price or 0.0) - discount_amount))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _expected_totals(self):
        discount = self.discount or _no_discount()
        tax = self.tax or _no_tax()
        return compute_totals(
            self.items,
            discount_amount=discount.amount,
            discount_percentage=discount.percentage,
            tax_rate=tax.rate,
            delivery_fee=self.delivery_fee,
        )

    def _recalculate(self):
        """Recompute derived fields. Callers hold ``atomic_change``."""
        totals = self._expected_totals()
        discount = self.discount or _no_discount()
        tax = self.tax or _no_tax()
        self.total_items = totals.total_items
        self.total_price = totals.total_price
        if not money_equal(discount.amount, totals.discount_amount):
            self.discount = Discount(code=discount.code, amount=totals.discount_amount, percentage=discount.percentage)
        self.tax = Tax(rate=tax.rate, amount=totals.tax_amount)
        self.final_total = totals.final_total
        self.updated_at = utcnow()

    # -------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------
    def is_expired(self, now=None) -> bool:
        now = as_utc(now) or utcnow()
        return self.expires_at is not None and as_utc(self.expires_at) <= now

    def extend_expiry(self, days=DEFAULT_CART_TTL_DAYS):
        self.expires_at = utcnow() + timedelta(days=days)

    # -------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------
    def find_item(self, product_id, customizations=None):
        key = customization_key(customizations)
        return next((item for item in self.items if item.matches(product_id, key)), None)

    def _require_item(self, product_id, customizations):
        item = self.find_item(product_id, customizations)
        if item is None:
            raise NotFoundError("Item not found in cart")
        return item

    def add_item(self, product_id, quantity, price, customizations=None, notes=None):
        """Add a line, or grow the identical line (same product and customizations)."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        key = customization_key(customizations)
        existing = self.find_item(product_id, customizations)

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                if notes:
                    existing.notes = notes
            else:
                self.add_items(
                    CartItem(
                        product_id=product_id,
                        quantity=quantity,
                        price=round_money(price),
                        customizations=key,
                        notes=notes,
                        added_at=utcnow(),
                    )
                )
            self._recalculate()

        self.raise_(
            CartItemAdded(
                user_id=self.user_id,
                product_id=product_id,
                quantity=quantity,
                customizations=key,
            )
        )

    def update_item_quantity(self, product_id, quantity, customizations=None):
        """Set a line's quantity; zero or less removes the line."""
        item = self._require_item(product_id, customizations)
        if quantity <= 0:
            self.remove_item(product_id, customizations)
            return

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            self._recalculate()

        self.raise_(
            CartItemQuantityUpdated(
                user_id=self.user_id,
                product_id=product_id,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id, customizations=None):
        item = self._require_item(product_id, customizations)
        with atomic_change(self):
            self.remove_items(item)
            self._recalculate()

        self.raise_(CartItemRemoved(user_id=self.user_id, product_id=product_id))

    # -------------------------------------------------------------------
    # Discount, tax and delivery
    # -------------------------------------------------------------------
    def apply_discount(self, code, amount=0.0, percentage=0.0):
        if self.is_empty:
            raise ValidationError({"cart": ["Cannot apply discount to an empty cart"]})
        if not code:
            raise ValidationError({"code": ["Discount code is required"]})

        with atomic_change(self):
            self.discount = Discount(
                code=code,
                amount=round_money(amount),
                percentage=percentage or 0.0,
            )
            self._recalculate()

        self.raise_(
            CartDiscountApplied(
                user_id=self.user_id,
                code=code,
                amount=self.discount.amount,
                percentage=self.discount.percentage,
            )
        )

    def remove_discount(self):
        with atomic_change(self):
            self.discount = _no_discount()
            self._recalculate()

        self.raise_(CartDiscountRemoved(user_id=self.user_id))

    def set_tax_rate(self, rate):
        with atomic_change(self):
            self.tax = Tax(rate=rate, amount=0.0)
            self._recalculate()

        self.raise_(CartChargesUpdated(user_id=self.user_id, tax_rate=rate, delivery_fee=self.delivery_fee))

    def set_delivery_fee(self, fee):
        with atomic_change(self):
            self.delivery_fee = round_money(fee)
            self._recalculate()

        self.raise_(CartChargesUpdated(user_id=self.user_id, tax_rate=self.tax.rate, delivery_fee=self.delivery_fee))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def clear(self, reason="requested"):
        """Empty the cart and reset every charge."""
        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self.discount = _no_discount()
            self.tax = _no_tax()
            self.delivery_fee = 0.0
            self._recalculate()

        self.raise_(CartCleared(user_id=self.user_id, reason=reason))

    def line_snapshot(self) -> list[dict]:
        """Plain copies of the line items, for building an order."""
        return [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price": item.price,
                "customizations": normalize_customizations(item.customizations),
                "notes": item.notes,
            }
            for item in self.items
        ]
