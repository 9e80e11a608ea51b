"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product line was added, or an identical line grew."""

    __version__ = 1

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    customizations = Text()


@storefront.event(part_of="Cart")
class CartItemQuantityUpdated:
    __version__ = 1

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartDiscountApplied:
    __version__ = 1

    user_id = Identifier(required=True)
    code = String(required=True)
    amount = Float(required=True)
    percentage = Float()


@storefront.event(part_of="Cart")
class CartDiscountRemoved:
    __version__ = 1

    user_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartChargesUpdated:
    """Tax rate or delivery fee changed."""

    __version__ = 1

    user_id = Identifier(required=True)
    tax_rate = Float()
    delivery_fee = Float()


@storefront.event(part_of="Cart")
class CartCleared:
    """All items and charges were removed, after checkout or on request."""

    __version__ = 1

    user_id = Identifier(required=True)
    reason = String(max_length=50)
