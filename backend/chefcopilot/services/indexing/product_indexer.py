"""
Incremental Product Indexer

One run indexes up to INDEXING_PRODUCTS_PER_RUN products that have no chunks
yet, in batches of INDEXING_BATCH_SIZE:

1. Chunk every product of the batch
2. Embed all chunk texts in one batch call
3. Verify alignment (one embedding per chunk, else the batch is skipped)
4. Delete any chunks already stored for those products (a product never
   mixes chunks from two runs)
5. Insert the new rows and commit

A failed batch is rolled back and recorded in ``errors``; the run carries
on with the next batch.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.core.config import settings
from chefcopilot.models.catalog import ProductEmbedding
from chefcopilot.schemas.catalog import ProductRecord
from chefcopilot.schemas.indexing import IndexingRunResult
from chefcopilot.services.catalog import ProductRepository
from chefcopilot.services.indexing.progress import (
    IndexedIdSource,
    IndexingProgressTracker,
    SqlIndexedIdSource,
)
from chefcopilot.services.processors.chunker import ProductChunker

logger = logging.getLogger(__name__)


class BatchEmbedder(Protocol):
    async def embed_texts_batch(self, texts: List[str]) -> List[List[float]]: ...


class ProductIndexer:
    """
    Chunk + embed + store for products that are not indexed yet.

    Usage:
    ------
    async with AsyncSessionLocal() as db:
        indexer = ProductIndexer(db, await get_embedding_service())
        result = await indexer.run()
        print(result.indexed, result.progress.percentage)
    """

    def __init__(
        self,
        db: AsyncSession,
        embedder: BatchEmbedder,
        chunker: Optional[ProductChunker] = None,
        tracker: Optional[IndexingProgressTracker] = None,
        repository: Optional[ProductRepository] = None,
        id_source: Optional[IndexedIdSource] = None,
        products_per_run: Optional[int] = None,
        batch_size: Optional[int] = None
    ):
        self.db = db
        self.embedder = embedder
        self.chunker = chunker or ProductChunker()
        self.tracker = tracker or IndexingProgressTracker()
        self.repository = repository or ProductRepository(db)
        self.id_source = id_source or SqlIndexedIdSource(db)
        self.products_per_run = (
            products_per_run if products_per_run is not None else settings.INDEXING_PRODUCTS_PER_RUN
        )
        self.batch_size = batch_size if batch_size is not None else settings.INDEXING_BATCH_SIZE

        if self.products_per_run < 1 or self.batch_size < 1:
            raise ValueError(
                f"products_per_run and batch_size must be >= 1, "
                f"got {self.products_per_run} and {self.batch_size}"
            )

    async def run(self, limit: Optional[int] = None) -> IndexingRunResult:
        """
        Run one incremental indexing pass.

        Args:
            limit: Max products this run (default INDEXING_PRODUCTS_PER_RUN)

        Returns:
            IndexingRunResult with per-batch errors and the post-run progress
        """
        limit = limit if limit is not None else self.products_per_run
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        products = await self.repository.list_unindexed(limit)
        logger.info(f"Indexing run: {len(products)} unindexed product(s) selected (limit={limit})")

        result = IndexingRunResult(attempted=len(products))

        batches = [
            products[i:i + self.batch_size]
            for i in range(0, len(products), self.batch_size)
        ]

        for batch_number, batch in enumerate(batches, 1):
            try:
                indexed, chunks_created = await self._index_batch(batch_number, batch)
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error processing batch {batch_number}/{len(batches)}: {e}")
                result.errors.append(f"Batch {batch_number}: {e}")
                continue

            result.indexed += indexed
            result.chunks_created += chunks_created

        total_products = await self.repository.count_indexable()
        result.progress = await self.tracker.status(total_products, self.id_source)

        logger.info(
            f"Indexing run finished: {result.indexed} product(s), {result.chunks_created} chunk(s), "
            f"{len(result.errors)} failed batch(es)"
        )
        return result

    async def _index_batch(self, batch_number: int, batch: List[Dict[str, Any]]) -> tuple[int, int]:
        """
        Index one batch.

        Returns:
            (products indexed, chunks created)

        Raises:
            ValueError: If the embedder returned a different number of vectors
        """
        records = [ProductRecord.model_validate(row) for row in batch]
        chunks = self.chunker.chunk_products(records)

        if not chunks:
            logger.warning(f"No chunks generated for batch {batch_number}")
            return 0, 0

        embeddings = await self.embedder.embed_texts_batch([chunk.content for chunk in chunks])

        if len(embeddings) != len(chunks):
            raise ValueError(f"Mismatch: {len(chunks)} chunks but {len(embeddings)} embeddings")

        product_ids = sorted({chunk.metadata.product_id for chunk in chunks})

        skipped = len(records) - len(product_ids)
        if skipped:
            logger.warning(f"Batch {batch_number}: {skipped} product(s) produced no chunks")

        await self.db.execute(
            delete(ProductEmbedding).where(ProductEmbedding.product_id.in_(product_ids))
        )

        self.db.add_all([
            ProductEmbedding(
                product_id=chunk.metadata.product_id,
                chunk_index=chunk.metadata.chunk_index,
                content=chunk.content,
                embedding=embedding,
                chunk_metadata=chunk.metadata.model_dump(),
            )
            for chunk, embedding in zip(chunks, embeddings)
        ])

        await self.db.commit()

        logger.info(
            f"Indexed batch {batch_number}: {len(product_ids)} product(s), {len(chunks)} chunk(s)"
        )
        return len(product_ids), len(chunks)
