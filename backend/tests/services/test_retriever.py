"""
Tests for the vector retriever.

This module tests:
- Threshold, ordering and limit guarantees
- Degradation to an empty result on blank queries and failures
- Distinct product id extraction
"""

from unittest.mock import AsyncMock, Mock

import pytest

from chefcopilot.schemas.catalog import RetrievedChunk
from chefcopilot.services.rag.retriever import (
    PgVectorSearch,
    VectorRetriever,
    create_retriever,
    unique_product_ids,
)
from tests.fakes import FakeVectorSearch


def _row(chunk_id, product_id, similarity, content=None):
    return {
        "id": chunk_id,
        "product_id": product_id,
        "content": content or f"chunk {chunk_id}",
        "similarity": similarity,
        "metadata": {"chunk_index": 0},
    }


# ========================================
# Threshold / Ordering / Limit
# ========================================

@pytest.mark.asyncio
async def test_retrieve_applies_threshold(mock_embedder):
    search = FakeVectorSearch([_row(1, 10, 0.9), _row(2, 11, 0.75), _row(3, 12, 0.5)])
    retriever = VectorRetriever(mock_embedder, search)

    chunks = await retriever.retrieve("induction plates", limit=5, threshold=0.7)

    assert [c.similarity for c in chunks] == [0.9, 0.75]
    assert [c.id for c in chunks] == [1, 2]
    assert search.calls[0]["threshold"] == 0.7
    assert search.calls[0]["limit"] == 5
    mock_embedder.embed_text.assert_awaited_once_with("induction plates")


@pytest.mark.asyncio
async def test_retrieve_sorts_and_truncates(mock_embedder):
    rows = [_row(1, 1, 0.6), _row(2, 2, 0.95), _row(3, 3, 0.8), _row(4, 4, 0.7)]
    retriever = VectorRetriever(mock_embedder, FakeVectorSearch(rows))

    chunks = await retriever.retrieve("sartén", limit=2, threshold=0.5)

    assert [c.id for c in chunks] == [2, 3]


@pytest.mark.asyncio
async def test_retrieve_ties_keep_input_order(mock_embedder):
    rows = [_row(5, 1, 0.8), _row(3, 2, 0.8), _row(9, 3, 0.8)]
    retriever = VectorRetriever(mock_embedder, FakeVectorSearch(rows))

    chunks = await retriever.retrieve("cuchillo", limit=10, threshold=0.5)

    assert [c.id for c in chunks] == [5, 3, 9]


@pytest.mark.asyncio
async def test_retrieve_uses_defaults(mock_embedder):
    search = FakeVectorSearch([])
    retriever = VectorRetriever(mock_embedder, search)

    await retriever.retrieve("olla")

    assert search.calls[0]["threshold"] == 0.5
    assert search.calls[0]["limit"] == 10


@pytest.mark.asyncio
async def test_retrieve_skips_malformed_rows(mock_embedder):
    rows = [{"id": 1, "content": "sin similitud"}, _row(2, 7, 0.9)]
    retriever = VectorRetriever(mock_embedder, FakeVectorSearch(rows))

    chunks = await retriever.retrieve("olla", threshold=0.5)

    assert [c.id for c in chunks] == [2]


@pytest.mark.asyncio
async def test_zero_limit_returns_empty(mock_embedder):
    search = FakeVectorSearch([_row(1, 1, 0.9)])
    retriever = VectorRetriever(mock_embedder, search, default_limit=3)

    assert await retriever.retrieve("olla", limit=0) == []
    assert search.calls == []


def test_zero_default_limit_is_rejected(mock_embedder):
    with pytest.raises(ValueError):
        VectorRetriever(mock_embedder, FakeVectorSearch([]), default_limit=0)


# ========================================
# Degradation
# ========================================

@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_blank_query_returns_empty(mock_embedder, query):
    search = FakeVectorSearch([_row(1, 1, 0.9)])
    retriever = VectorRetriever(mock_embedder, search)

    assert await retriever.retrieve(query) == []
    mock_embedder.embed_text.assert_not_called()
    assert search.calls == []


@pytest.mark.asyncio
async def test_missing_dependencies_return_empty(mock_embedder):
    assert await VectorRetriever(None, FakeVectorSearch([_row(1, 1, 0.9)])).retrieve("olla") == []
    assert await VectorRetriever(mock_embedder, None).retrieve("olla") == []


@pytest.mark.asyncio
async def test_embedding_failure_returns_empty():
    embedder = Mock()
    embedder.embed_text = AsyncMock(side_effect=RuntimeError("model not loaded"))
    search = FakeVectorSearch([_row(1, 1, 0.9)])

    chunks = await VectorRetriever(embedder, search).retrieve("olla")

    assert chunks == []
    assert search.calls == []


@pytest.mark.asyncio
async def test_search_failure_returns_empty(mock_embedder):
    search = FakeVectorSearch(error=ConnectionError("database is down"))

    assert await VectorRetriever(mock_embedder, search).retrieve("olla") == []


# ========================================
# Helpers
# ========================================

def test_unique_product_ids_first_seen_order():
    chunks = [
        RetrievedChunk(id=1, product_id=7, content="a", similarity=0.9),
        RetrievedChunk(id=2, product_id=3, content="b", similarity=0.8),
        RetrievedChunk(id=3, product_id=7, content="c", similarity=0.7),
        RetrievedChunk(id=4, product_id=None, content="d", similarity=0.6),
    ]

    assert unique_product_ids(chunks) == [7, 3]


def test_create_retriever_wires_pgvector(mock_embedder):
    db = Mock()

    retriever = create_retriever(mock_embedder, db)

    assert retriever.embedder is mock_embedder
    assert isinstance(retriever.vector_search, PgVectorSearch)
    assert retriever.vector_search.db is db
