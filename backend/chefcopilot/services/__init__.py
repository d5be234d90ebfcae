"""Business logic services."""

from chefcopilot.services.catalog import ProductRepository

__all__ = [
    "ProductRepository",
]
