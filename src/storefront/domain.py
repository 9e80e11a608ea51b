"""Storefront bounded context: product catalog, carts and orders.

Product, Cart, Order and OrderSequence live in one domain so that checkout
runs as a single Unit of Work across all four aggregates.
"""

from protean.domain import Domain

from shared.db import configure_database
from shared.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")

configure_database(storefront)
