"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalog."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    price = Float(required=True)
    stock_quantity = Integer()
    created_by = Identifier()
    created_at = DateTime()


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    """Editable product attributes were changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    changed_fields = Text()  # JSON array of field names
    updated_by = Identifier()


@storefront.event(part_of="Product")
class ProductDeactivated:
    """The product was soft-deleted and no longer appears in the storefront."""

    __version__ = 1

    product_id = Identifier(required=True)
    deactivated_by = Identifier()


@storefront.event(part_of="Product")
class StockReserved:
    """Stock was taken for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class StockRestored:
    """Stock was returned from a cancelled order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class ProductReviewed:
    """A customer added or replaced their review of the product."""

    __version__ = 1

    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    rating_average = Float(required=True)
    rating_count = Integer(required=True)
