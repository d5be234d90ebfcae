"""
Tests for lexical search over uploaded documents.

This module tests:
- Ranking (file name matches count as title matches)
- Plain snippets with a wide window, no emphasis
- Degradation on blank queries and store failures
"""

from datetime import datetime, timezone

import pytest

from chefcopilot.services.rag.document_search import DocumentSearch
from tests.fakes import FakeDocumentStore


@pytest.fixture
def documents():
    uploaded = datetime(2026, 9, 1, tzinfo=timezone.utc)
    return [
        {
            "id": 1,
            "original_filename": "manual-batidora.pdf",
            "file_type": "pdf",
            "extracted_text": "Limpie la garantía... La garantía cubre el motor durante dos años.",
            "created_at": uploaded,
        },
        {
            "id": 2,
            "original_filename": "garantia.txt",
            "file_type": "txt",
            "extracted_text": "Condiciones generales de garantia.",
            "created_at": uploaded,
        },
        {
            "id": 3,
            "original_filename": "ficha-sarten.docx",
            "file_type": "docx",
            "extracted_text": None,
            "created_at": uploaded,
        },
    ]


@pytest.mark.asyncio
async def test_file_name_match_ranks_first(documents):
    search = DocumentSearch(FakeDocumentStore(documents))

    results = await search.search("garantia")

    assert [r.id for r in results] == [2]
    assert results[0].score == 17
    assert results[0].filename == "garantia.txt"
    assert results[0].file_type == "txt"


@pytest.mark.asyncio
async def test_snippet_is_plain_and_wide():
    text = "x" * 150 + " motor de cobre " + "y" * 150
    search = DocumentSearch(FakeDocumentStore([{"id": 9, "original_filename": "f.pdf", "extracted_text": text}]))

    results = await search.search("motor")

    index = text.find("motor")
    assert results[0].snippet == "..." + text[index - 100:index + 5 + 100] + "..."
    assert "**" not in results[0].snippet


@pytest.mark.asyncio
async def test_document_without_text_has_empty_snippet(documents):
    search = DocumentSearch(FakeDocumentStore(documents))

    results = await search.search("sarten")

    assert [r.id for r in results] == [3]
    assert results[0].snippet == ""
    assert results[0].score == 10


@pytest.mark.asyncio
async def test_limit_and_candidate_pool(documents):
    store = FakeDocumentStore(documents)
    search = DocumentSearch(store, max_candidates=40)

    results = await search.search("a", limit=2)

    assert len(results) == 2
    assert store.candidate_limits == [40]


@pytest.mark.asyncio
async def test_default_limit():
    many = [
        {"id": i, "original_filename": f"doc-{i}.txt", "extracted_text": "receta"}
        for i in range(1, 9)
    ]
    results = await DocumentSearch(FakeDocumentStore(many)).search("receta")

    assert [r.id for r in results] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_blank_query_returns_empty(documents, query):
    store = FakeDocumentStore(documents)

    assert await DocumentSearch(store).search(query) == []
    assert store.candidate_limits == []


@pytest.mark.asyncio
async def test_store_failure_returns_empty():
    search = DocumentSearch(FakeDocumentStore(error=ConnectionError("timeout")))

    assert await search.search("garantía") == []


@pytest.mark.asyncio
async def test_no_store_returns_empty():
    assert await DocumentSearch(None).search("garantía") == []
