"""
Pytest configuration and fixtures.

This file is automatically discovered by pytest and provides
shared fixtures for all test modules.

No test touches a live database or downloads a model: every external
collaborator (embedder, vector search, web content store, indexed id
source) is replaced by an in-memory fake from ``tests.fakes``.

References:
-----------
- Pytest Fixtures: https://docs.pytest.org/en/stable/fixture.html
- FastAPI Testing: https://fastapi.tiangolo.com/tutorial/testing/
"""

from unittest.mock import AsyncMock, Mock

import pytest

from chefcopilot.schemas.catalog import ProductRecord


# ================================
# Fixtures
# ================================

@pytest.fixture
def mock_embedder():
    """Embedder returning a fixed vector for queries and one vector per batch text."""
    embedder = Mock()
    embedder.embed_text = AsyncMock(return_value=[0.1] * 384)
    embedder.embed_texts_batch = AsyncMock(
        side_effect=lambda texts: [[0.1] * 384 for _ in texts]
    )
    return embedder


@pytest.fixture
def make_product():
    """Factory for ProductRecord with sensible defaults."""

    def _make(product_id: int = 1, **fields) -> ProductRecord:
        return ProductRecord(id=product_id, **fields)

    return _make


@pytest.fixture
def product_row():
    """A catalog row as returned by ProductRepository."""
    return {
        "id": 42,
        "name": "Sartén Inducción 28cm",
        "description": "Sartén de aluminio forjado apta para inducción.",
        "category": "Sartenes",
        "subcategory": "Inducción",
        "price": "34.90",
        "sku": "SRT-28-IND",
        "image_url": "https://cdn.example.com/srt28.jpg",
        "image": None,
        "product_url": "https://shop.example.com/sarten-28",
        "date_add": None,
        "colors": ["negro"],
        "all_categories": ["Sartenes", "Inducción"],
    }
