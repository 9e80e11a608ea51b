"""Storefront bounded context: catalog, cart and orders."""
