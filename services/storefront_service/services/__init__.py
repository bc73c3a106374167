"""Storefront business logic: pricing, slots, store config, carts and orders."""
