"""
Database Models

Import models from this module to ensure they're registered with SQLAlchemy:

    from chefcopilot.models import Document, Product, ProductEmbedding, WebContentItem
"""

from chefcopilot.models.catalog import (
    Document,
    Product,
    ProductEmbedding,
    WebContentItem,
    WebContentStatus,
)

__all__ = [
    "Product",
    "ProductEmbedding",
    "WebContentItem",
    "Document",
    # Enums
    "WebContentStatus",
]
