"""Product aggregate with Review entity and Rating value object.

Products are soft-deleted (``is_active = False``) and never removed, so that
order snapshots and reviews keep a valid reference.
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from shared.errors import OutOfStockError, UnavailableError
from shared.jsontext import dumps_json
from storefront.domain import storefront
from storefront.product.events import (
    ProductCreated,
    ProductDeactivated,
    ProductDetailsUpdated,
    ProductReviewed,
    StockReserved,
    StockRestored,
)
from storefront.shared.clock import as_utc, utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Category(Enum):
    TEA = "tea"
    COFFEE = "coffee"
    SNACKS = "snacks"
    PASTRIES = "pastries"
    BEVERAGES = "beverages"
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class Unit(Enum):
    PIECE = "piece"
    CUP = "cup"
    PLATE = "plate"
    SERVING = "serving"
    KG = "kg"
    GRAM = "gram"
    LITER = "liter"
    ML = "ml"


class SpiceLevel(Enum):
    NONE = "none"
    MILD = "mild"
    MEDIUM = "medium"
    HOT = "hot"
    EXTRA_HOT = "extra-hot"


class Availability(Enum):
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out-of-stock"
    LOW_STOCK = "low-stock"
    IN_STOCK = "in-stock"


DEFAULT_LOW_STOCK_THRESHOLD = 5

# Attributes an admin may change through update_details
_EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "price",
        "original_price",
        "category",
        "subcategory",
        "image",
        "images",
        "in_stock",
        "stock_quantity",
        "unit",
        "preparation_time",
        "ingredients",
        "nutritional_info",
        "tags",
        "is_vegetarian",
        "is_vegan",
        "is_gluten_free",
        "spice_level",
        "is_active",
        "is_featured",
        "sale_price",
        "sale_start_date",
        "sale_end_date",
    }
)

# Stored as JSON in Text fields
_JSON_FIELDS = frozenset({"images", "ingredients", "nutritional_info", "tags"})


# ---------------------------------------------------------------------------
# Value Objects and Entities
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Product")
class Rating:
    """Aggregate score over a product's reviews. Replaced whenever reviews change."""

    average = Float(default=0.0, min_value=0.0, max_value=5.0)
    count = Integer(default=0, min_value=0)


@storefront.entity(part_of="Product")
class Review:
    user_id = Identifier(required=True)
    user_name = String(max_length=50)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)
    created_at = DateTime()


def _rating_for(reviews) -> Rating:
    if not reviews:
        return Rating(average=0.0, count=0)
    average = sum(r.rating for r in reviews) / len(reviews)
    return Rating(average=round(average, 1), count=len(reviews))


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate
class Product:
    name = String(required=True, min_length=2, max_length=100)
    description = String(required=True, min_length=10, max_length=1000)
    price = Float(required=True, min_value=0.0, max_value=10000.0)
    original_price = Float(min_value=0.0)
    category = String(required=True, choices=Category)
    subcategory = String(max_length=50)
    image = String(max_length=500, default="/placeholder.svg")
    images = Text()  # JSON array of image URLs
    in_stock = Boolean(default=True)
    stock_quantity = Integer(default=0, min_value=0)
    unit = String(choices=Unit, default=Unit.PIECE.value)
    preparation_time = Integer(default=5, min_value=1, max_value=120)  # minutes
    ingredients = Text()  # JSON array of strings
    nutritional_info = Text()  # JSON object: calories, protein, carbs, fat, sugar
    tags = Text()  # JSON array of strings
    is_vegetarian = Boolean(default=False)
    is_vegan = Boolean(default=False)
    is_gluten_free = Boolean(default=False)
    spice_level = String(choices=SpiceLevel, default=SpiceLevel.NONE.value)
    rating = ValueObject(Rating)
    reviews = HasMany(Review)
    is_active = Boolean(default=True)
    is_featured = Boolean(default=False)
    sale_price = Float(min_value=0.0)
    sale_start_date = DateTime()
    sale_end_date = DateTime()
    created_by = Identifier()
    updated_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def rating_must_reflect_reviews(self):
        expected = _rating_for(self.reviews)
        count = self.rating.count if self.rating else 0
        average = self.rating.average if self.rating else 0.0
        if count != expected.count or abs(average - expected.average) > 0.05:
            raise ValidationError({"rating": ["Rating must be the mean of current reviews"]})

    @invariant.post
    def sale_window_must_be_ordered(self):
        if self.sale_start_date and self.sale_end_date:
            if as_utc(self.sale_start_date) > as_utc(self.sale_end_date):
                raise ValidationError({"sale_end_date": ["Sale end date must be after the start date"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, description, price, category, created_by=None, **attributes):
        unknown = set(attributes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError({field: ["Unknown product attribute"] for field in sorted(unknown)})

        for field_name in _JSON_FIELDS & set(attributes):
            attributes[field_name] = dumps_json(attributes[field_name])
        attributes = {k: v for k, v in attributes.items() if v is not None}

        now = utcnow()
        product = cls(
            name=name,
            description=description,
            price=price,
            category=category,
            rating=Rating(average=0.0, count=0),
            created_by=created_by,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                name=product.name,
                category=product.category,
                price=product.price,
                stock_quantity=product.stock_quantity,
                created_by=created_by,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Catalog administration
    # -------------------------------------------------------------------
    def update_details(self, updated_by=None, **changes):
        """Apply a partial update of editable attributes."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in sorted(unknown)})
        if not changes:
            return

        with atomic_change(self):
            for field_name, value in changes.items():
                if field_name in _JSON_FIELDS:
                    value = dumps_json(value)
                setattr(self, field_name, value)
            self.updated_by = updated_by
            self.updated_at = utcnow()

        self.raise_(
            ProductDetailsUpdated(
                product_id=self.id,
                changed_fields=dumps_json(sorted(changes)),
                updated_by=updated_by,
            )
        )

    def deactivate(self, deactivated_by=None):
        """Soft delete: the product disappears from listings but stays referenced."""
        self.is_active = False
        self.updated_by = deactivated_by
        self.updated_at = utcnow()

        self.raise_(ProductDeactivated(product_id=self.id, deactivated_by=deactivated_by))

    # -------------------------------------------------------------------
    # Pricing and availability
    # -------------------------------------------------------------------
    def effective_price(self, now=None) -> float:
        """Sale price while the sale window contains ``now``, else the list price."""
        now = as_utc(now) or utcnow()
        if self.sale_price is not None and self.sale_start_date and self.sale_end_date:
            if as_utc(self.sale_start_date) <= now <= as_utc(self.sale_end_date):
                return self.sale_price
        return self.price

    @property
    def discount_percentage(self) -> int:
        if self.original_price and self.original_price > self.price:
            return round((self.original_price - self.price) / self.original_price * 100)
        return 0

    def availability(self, threshold=DEFAULT_LOW_STOCK_THRESHOLD) -> str:
        if not self.is_active:
            return Availability.INACTIVE.value
        if not self.in_stock or not self.stock_quantity:
            return Availability.OUT_OF_STOCK.value
        if self.stock_quantity <= threshold:
            return Availability.LOW_STOCK.value
        return Availability.IN_STOCK.value

    def is_available_for(self, quantity) -> bool:
        return bool(self.is_active and self.in_stock and (self.stock_quantity or 0) >= quantity)

    def ensure_available(self, quantity):
        """Raise if ``quantity`` units cannot be sold right now."""
        if not self.is_active or not self.in_stock:
            raise UnavailableError(f"{self.name} is currently unavailable")
        if (self.stock_quantity or 0) < quantity:
            raise OutOfStockError(
                f"Insufficient stock for {self.name}. Only {self.stock_quantity or 0} available",
                {"product_id": str(self.id), "available": self.stock_quantity or 0, "requested": quantity},
            )

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def reserve_stock(self, quantity):
        """Take ``quantity`` units for an order."""
        self.ensure_available(quantity)
        self.stock_quantity -= quantity
        self.updated_at = utcnow()

        self.raise_(StockReserved(product_id=self.id, quantity=quantity, remaining=self.stock_quantity))

    def restore_stock(self, quantity):
        """Return ``quantity`` units from a cancelled order."""
        self.stock_quantity = (self.stock_quantity or 0) + quantity
        self.updated_at = utcnow()

        self.raise_(StockRestored(product_id=self.id, quantity=quantity, remaining=self.stock_quantity))

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def add_review(self, user_id, rating, comment=None, user_name=None):
        """Add the user's review, replacing any review they left before."""
        if not self.is_active:
            raise UnavailableError("Cannot review an inactive product")

        now = utcnow()
        review = Review(
            user_id=user_id,
            user_name=user_name,
            rating=rating,
            comment=comment,
            created_at=now,
        )

        with atomic_change(self):
            previous = next((r for r in self.reviews if str(r.user_id) == str(user_id)), None)
            if previous is not None:
                self.remove_reviews(previous)

            self.add_reviews(review)
            self.rating = _rating_for(self.reviews)
            self.updated_at = now

        self.raise_(
            ProductReviewed(
                product_id=self.id,
                user_id=user_id,
                rating=rating,
                rating_average=self.rating.average,
                rating_count=self.rating.count,
            )
        )
