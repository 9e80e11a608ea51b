"""Repository for the Cart aggregate."""

from protean.exceptions import ObjectNotFoundError

from shared.config import get_settings
from shared.querying import fetch_all
from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def get_or_create(self, user_id) -> Cart:
        """The user's cart, created on first access and emptied once expired."""
        try:
            cart = self.get(str(user_id))
        except ObjectNotFoundError:
            return Cart.create(user_id=str(user_id))

        if cart.is_expired():
            cart.clear(reason="expired")
        return cart

    def save(self, cart: Cart) -> Cart:
        """Persist after a write, pushing the expiry window forward."""
        cart.extend_expiry(days=get_settings().CART_TTL_DAYS)
        return self.add(cart)

    def find_expired(self, now=None) -> list[Cart]:
        return [cart for cart in fetch_all(self._dao) if cart.is_expired(now)]
