"""Expired cart cleanup.

Carts untouched for CART_TTL_DAYS are emptied lazily on their next access.
This command sweeps them in bulk and is meant to be triggered periodically
by an external scheduler through the maintenance API endpoint.
"""

import structlog
from protean import handle
from protean.fields import DateTime
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.shared.clock import utcnow

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class PurgeExpiredCarts:
    """Empty every cart whose expiry has passed."""

    as_of = DateTime()  # Optional: defaults to now


@storefront.command_handler(part_of=Cart)
class PurgeExpiredCartsHandler:
    @handle(PurgeExpiredCarts)
    def purge_expired_carts(self, command):
        as_of = command.as_of or utcnow()
        repo = current_domain.repository_for(Cart)

        purged = 0
        for cart in repo.find_expired(as_of):
            if not cart.is_empty:
                cart.clear(reason="expired")
                repo.add(cart)
                purged += 1

        logger.info("Expired carts purged", purged_count=purged, as_of=as_of.isoformat())
        return purged
