"""Storefront API: shop catalog, orders, returns, repairs and back office."""

__version__ = "0.1.0"
