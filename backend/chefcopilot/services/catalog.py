"""
Product Repository

Read access to the ``products`` table for the chat and indexing pipelines.
Rows are returned as plain dicts so callers never hold ORM state across
session boundaries.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.models.catalog import Product, ProductEmbedding

logger = logging.getLogger(__name__)


def contains_pattern(term: str) -> str:
    """``%term%`` for ILIKE, with LIKE wildcards in ``term`` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_dict(product: Product) -> Dict[str, Any]:
    return product.dict()


# Fields the chunker reads; a product needs text in at least one of them
INDEXABLE_FIELDS = ("name", "category", "subcategory", "description")


def has_indexable_text(row: Mapping[str, Any]) -> bool:
    """True when the chunker would produce at least one chunk for ``row``."""
    return any(str(row.get(field) or "").strip() for field in INDEXABLE_FIELDS)


def _indexable_clause():
    # NULL ~ pattern is NULL, so NULL columns never count as text
    return or_(*(getattr(Product, field).op("~")(r"\S") for field in INDEXABLE_FIELDS))


class ProductRepository:
    """
    Catalog data access.

    Usage:
    ------
    repo = ProductRepository(db)
    rows = await repo.get_by_ids([12, 7])
    matches = await repo.search_by_name("cuchillo", limit=5)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_ids(self, product_ids: Iterable[int]) -> List[Dict[str, Any]]:
        """
        Fetch products by id.

        Returns:
            Rows in the order of ``product_ids``; ids with no row are skipped
        """
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return []

        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        by_id = {product.id: _row_to_dict(product) for product in result.scalars().all()}

        missing = [pid for pid in ids if pid not in by_id]
        if missing:
            logger.warning(f"Referenced product id(s) not found in catalog: {missing}")

        return [by_id[pid] for pid in ids if pid in by_id]

    async def search_by_name(self, term: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on product name."""
        term = term.strip()
        if not term:
            return []

        query = (
            select(Product)
            .where(Product.name.ilike(contains_pattern(term), escape="\\"))
            .order_by(Product.id)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [_row_to_dict(product) for product in result.scalars().all()]

    async def count_indexable(self) -> int:
        """Products with at least one chunkable text field (the indexing target)."""
        query = select(func.count()).select_from(Product).where(_indexable_clause())
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def list_unindexed(self, limit: int) -> List[Dict[str, Any]]:
        """
        Indexable products with no rows in ``product_embeddings``, ordered by id.

        Products without any text yield no chunks, so they would otherwise
        be selected again on every run.

        Args:
            limit: Max products returned
        """
        has_chunks = (
            select(ProductEmbedding.id)
            .where(ProductEmbedding.product_id == Product.id)
            .exists()
        )
        query = (
            select(Product)
            .where(~has_chunks, _indexable_clause())
            .order_by(Product.id)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [_row_to_dict(product) for product in result.scalars().all()]
