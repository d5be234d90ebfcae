"""
Vector Retriever for RAG

This module implements query-time semantic retrieval over product chunks:
1. Embed the query (one call, no batching)
2. Nearest-neighbour search over product_embeddings (pgvector cosine)
3. Threshold / limit enforcement and stable ordering

Every failure on this path degrades to an empty result: callers treat "no
chunks" as "no evidence found", never as an error.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.core.config import settings
from chefcopilot.models.catalog import ProductEmbedding
from chefcopilot.schemas.catalog import RetrievedChunk

logger = logging.getLogger(__name__)


# ========================================
# Collaborator Protocols
# ========================================

class QueryEmbedder(Protocol):
    async def embed_text(self, text: str) -> List[float]: ...


class VectorSearch(Protocol):
    """
    Nearest-neighbour search function.

    Returns rows with ``id``, ``product_id``, ``content``, ``similarity``
    (0-1, higher is closer) and ``metadata``. Implementations enforce the
    threshold floor and the row cap themselves.
    """

    async def search(
        self,
        query_embedding: Sequence[float],
        threshold: float,
        limit: int
    ) -> List[Dict[str, Any]]: ...


# ========================================
# pgvector Implementation
# ========================================

class PgVectorSearch:
    """
    Cosine similarity search over ``product_embeddings``.

    similarity = 1 - cosine_distance, so rows are ordered by ascending
    distance and filtered on ``1 - distance >= threshold``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(
        self,
        query_embedding: Sequence[float],
        threshold: float,
        limit: int
    ) -> List[Dict[str, Any]]:
        distance = ProductEmbedding.embedding.cosine_distance(list(query_embedding))
        similarity = (1 - distance).label("similarity")

        query = (
            select(
                ProductEmbedding.id,
                ProductEmbedding.product_id,
                ProductEmbedding.content,
                ProductEmbedding.chunk_metadata,
                similarity,
            )
            .where(1 - distance >= threshold)
            .order_by(distance)
            .limit(limit)
        )

        result = await self.db.execute(query)

        return [
            {
                "id": row.id,
                "product_id": row.product_id,
                "content": row.content,
                "similarity": float(row.similarity),
                "metadata": row.chunk_metadata or {},
            }
            for row in result.all()
        ]


# ========================================
# Retriever
# ========================================

class VectorRetriever:
    """
    Semantic retriever for catalog chunks.

    Guarantees on the returned list:
    --------------------------------
    - every chunk has similarity >= threshold
    - non-increasing similarity, input order preserved on ties
    - at most ``limit`` chunks

    Usage:
    ------
    retriever = VectorRetriever(embedder, PgVectorSearch(db))
    chunks = await retriever.retrieve("placas de inducción", limit=5, threshold=0.7)
    product_ids = unique_product_ids(chunks)
    """

    def __init__(
        self,
        embedder: Optional[QueryEmbedder],
        vector_search: Optional[VectorSearch],
        default_threshold: Optional[float] = None,
        default_limit: Optional[int] = None
    ):
        """
        Args:
            embedder: Query embedding client (None = unavailable)
            vector_search: Nearest-neighbour search (None = unavailable)
            default_threshold: Similarity floor when the caller gives none
            default_limit: Result cap when the caller gives none
        """
        self.embedder = embedder
        self.vector_search = vector_search
        self.default_threshold = (
            default_threshold if default_threshold is not None else settings.RAG_MATCH_THRESHOLD
        )
        self.default_limit = default_limit if default_limit is not None else settings.RAG_MATCH_COUNT
        if self.default_limit < 1:
            raise ValueError(f"default_limit must be >= 1, got {self.default_limit}")

    async def retrieve(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> List[RetrievedChunk]:
        """
        Retrieve the chunks most similar to ``query``.

        Args:
            query: User query text
            limit: Max chunks returned
            threshold: Minimum similarity (0-1)

        Returns:
            Chunks, highest similarity first. Empty for a blank query, a
            missing dependency, or a failed embedding/search call.
        """
        limit = limit if limit is not None else self.default_limit
        threshold = threshold if threshold is not None else self.default_threshold

        if not query or not query.strip():
            logger.debug("Blank query, skipping vector retrieval")
            return []

        if limit < 1:
            logger.debug(f"Non-positive limit ({limit}), skipping vector retrieval")
            return []

        if self.embedder is None or self.vector_search is None:
            logger.warning("Vector retrieval unavailable: embedder or vector search not configured")
            return []

        try:
            query_embedding = await self.embedder.embed_text(query)
        except Exception as e:
            logger.warning(f"Query embedding failed, continuing without vector evidence: {e}")
            return []

        try:
            rows = await self.vector_search.search(query_embedding, threshold, limit)
        except Exception as e:
            logger.warning(f"Vector search failed, continuing without vector evidence: {e}")
            return []

        chunks: List[RetrievedChunk] = []
        for row in rows or []:
            try:
                chunk = RetrievedChunk.model_validate(row)
            except ValidationError as e:
                logger.warning(f"Skipping malformed vector search row: {e.error_count()} error(s)")
                continue

            # Stale reads can return rows below the floor
            if chunk.similarity >= threshold:
                chunks.append(chunk)

        # sorted() is stable: ties keep the search function's order
        chunks = sorted(chunks, key=lambda c: c.similarity, reverse=True)[:limit]

        logger.info(
            f"Vector retrieval: {len(chunks)} chunk(s) at threshold={threshold}, limit={limit}"
        )
        return chunks


# ========================================
# Utility Functions
# ========================================

def unique_product_ids(chunks: List[RetrievedChunk]) -> List[int]:
    """
    Distinct product ids referenced by ``chunks``, first-seen order.

    Chunks without a product id are logged and skipped.
    """
    seen = set()
    product_ids: List[int] = []

    for chunk in chunks:
        if chunk.product_id is None:
            logger.warning(f"Retrieved chunk {chunk.id} has no product_id; skipping")
            continue
        if chunk.product_id not in seen:
            seen.add(chunk.product_id)
            product_ids.append(chunk.product_id)

    return product_ids


def create_retriever(embedder: Optional[QueryEmbedder], db: AsyncSession) -> VectorRetriever:
    """Build a VectorRetriever backed by pgvector."""
    return VectorRetriever(embedder, PgVectorSearch(db))
