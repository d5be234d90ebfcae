"""
Indexing Progress Tracker

Reports how much of the catalog has chunks in ``product_embeddings``.

Coverage is a DISTINCT product count: a product with ten chunks counts once,
so the raw chunk row count can never stand in for it. Indexed ids are read
page by page and accumulated into a set until one of:

- a page comes back empty or shorter than the page size (end of data)
- a page read fails
- the rows-scanned safety ceiling is reached

The tracker is read-only; calling it twice with no indexing in between
returns the same snapshot.
"""

import logging
from typing import Iterable, List, Optional, Protocol, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.core.config import settings
from chefcopilot.models.catalog import ProductEmbedding
from chefcopilot.schemas.indexing import IndexingProgress

logger = logging.getLogger(__name__)

COMPLETED_MESSAGE = "✅ Todos los productos están indexados"


# ========================================
# Indexed Id Sources
# ========================================

class IndexedIdSource(Protocol):
    """Paged reader over the product ids of stored chunks (one id per chunk row)."""

    async def fetch_page(self, offset: int, page_size: int) -> List[Optional[int]]: ...


class SqlIndexedIdSource:
    """IndexedIdSource over ``product_embeddings``, ordered by chunk id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_page(self, offset: int, page_size: int) -> List[Optional[int]]:
        query = (
            select(ProductEmbedding.product_id)
            .order_by(ProductEmbedding.id)
            .offset(offset)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_chunks(self) -> int:
        """Raw chunk row count (reported alongside coverage, never instead of it)."""
        result = await self.db.execute(select(func.count()).select_from(ProductEmbedding))
        return int(result.scalar_one())


# ========================================
# Progress Computation
# ========================================

def compute_progress(total_products: int, indexed_ids: Iterable[int]) -> IndexingProgress:
    """
    Build an IndexingProgress snapshot.

    Args:
        total_products: Catalog size
        indexed_ids: Product ids that have at least one chunk

    Returns:
        IndexingProgress with percentage rounded half up, 0 for an empty catalog
    """
    total_products = max(0, total_products)
    distinct = set(indexed_ids)

    total_indexed = len(distinct)
    if total_indexed > total_products:
        # Chunks outlived their products (catalog rows deleted since indexing)
        logger.warning(
            f"Chunks reference {total_indexed} product ids but the catalog has {total_products}; "
            f"clamping coverage"
        )
        total_indexed = total_products

    remaining = total_products - total_indexed

    if total_products > 0:
        percentage = (total_indexed * 200 + total_products) // (total_products * 2)
    else:
        percentage = 0

    completed = remaining == 0

    message = (
        COMPLETED_MESSAGE
        if completed
        else f"⏳ Indexación en progreso: {total_indexed}/{total_products} productos ({percentage}%)"
    )

    return IndexingProgress(
        total_products=total_products,
        total_indexed=total_indexed,
        remaining=remaining,
        percentage=percentage,
        status="completed" if completed else "in_progress",
        message=message,
    )


class IndexingProgressTracker:
    """
    Paged, deduplicating progress reader.

    Usage:
    ------
    tracker = IndexingProgressTracker()
    progress = await tracker.status(total_products=1000, source=SqlIndexedIdSource(db))
    print(progress.percentage, progress.status)
    """

    def __init__(
        self,
        page_size: Optional[int] = None,
        max_rows_scanned: Optional[int] = None
    ):
        """
        Args:
            page_size: Rows per page read (default 10000)
            max_rows_scanned: Safety ceiling on rows read per scan (default 100000)
        """
        self.page_size = page_size if page_size is not None else settings.INDEXING_PAGE_SIZE
        self.max_rows_scanned = (
            max_rows_scanned if max_rows_scanned is not None else settings.INDEXING_MAX_ROWS_SCANNED
        )

        # A zero page size would read the same empty page forever
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.max_rows_scanned < 1:
            raise ValueError(f"max_rows_scanned must be >= 1, got {self.max_rows_scanned}")

    async def collect_indexed_ids(self, source: IndexedIdSource) -> Set[int]:
        """
        Read ``source`` to exhaustion (or the ceiling) and return distinct ids.

        A failed page read ends the scan with whatever was collected so far.
        """
        indexed: Set[int] = set()
        offset = 0

        while True:
            try:
                page = await source.fetch_page(offset, self.page_size)
            except Exception as e:
                logger.warning(f"Indexed id page read failed at offset {offset}: {e}")
                break

            if not page:
                break

            indexed.update(product_id for product_id in page if product_id is not None)

            if len(page) < self.page_size:
                break

            offset += self.page_size

            if offset >= self.max_rows_scanned:
                logger.warning(
                    f"Indexed id scan reached the safety ceiling ({self.max_rows_scanned} rows); "
                    f"coverage may be under-reported"
                )
                break

        logger.debug(f"Collected {len(indexed)} distinct indexed product id(s)")
        return indexed

    async def status(self, total_products: int, source: IndexedIdSource) -> IndexingProgress:
        """Current coverage of a ``total_products``-sized catalog."""
        indexed = await self.collect_indexed_ids(source)
        progress = compute_progress(total_products, indexed)

        logger.info(
            f"Indexing progress: {progress.total_indexed}/{progress.total_products} "
            f"({progress.percentage}%), status={progress.status}"
        )
        return progress
