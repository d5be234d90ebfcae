"""
Tests for catalog chat orchestration.

This module tests:
- The happy path (vector evidence → products_db)
- Name-search fallback when no chunk clears the threshold
- Web content evidence
- Degradation when lookups fail or time out
- Generation failures reaching the caller
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from chefcopilot.core.exceptions import GenerationError
from chefcopilot.schemas.catalog import RetrievedChunk
from chefcopilot.schemas.chat import ChatRequest
from chefcopilot.services.rag.chat_service import CatalogChatService, product_evidence_text
from chefcopilot.services.rag.context import NO_CONTEXT_MARKER
from chefcopilot.services.rag.generator import GeneratedAnswer
from chefcopilot.services.rag.web_search import WebContentSearch
from tests.fakes import FakeWebContentStore


# ========================================
# Fixtures
# ========================================

@pytest.fixture
def retriever():
    retriever = Mock()
    retriever.retrieve = AsyncMock(return_value=[
        RetrievedChunk(id=1, product_id=42, content="Sartén Inducción 28cm", similarity=0.82),
        RetrievedChunk(id=2, product_id=42, content="Sartén de aluminio forjado", similarity=0.74),
    ])
    return retriever


@pytest.fixture
def repository(product_row):
    repository = Mock()
    repository.get_by_ids = AsyncMock(return_value=[product_row])
    repository.search_by_name = AsyncMock(return_value=[])
    return repository


@pytest.fixture
def generator():
    generator = Mock()
    generator.generate = AsyncMock(
        return_value=GeneratedAnswer(text="Tenemos la Sartén Inducción 28cm.", model="claude-test")
    )
    return generator


def _service(retriever, repository, generator, **kwargs):
    return CatalogChatService(
        vector_retriever=retriever,
        product_repository=repository,
        generator=generator,
        match_threshold=0.5,
        match_count=10,
        **kwargs,
    )


# ========================================
# Tests
# ========================================

@pytest.mark.asyncio
async def test_answer_with_vector_evidence(retriever, repository, generator):
    service = _service(retriever, repository, generator)

    response = await service.answer(ChatRequest(message="¿Tenéis sartenes de inducción?"))

    assert response.success is True
    assert response.message == "Tenemos la Sartén Inducción 28cm."
    assert response.sources == ["products_db"]
    assert [p.id for p in response.products] == [42]

    retriever.retrieve.assert_awaited_once_with(
        "¿Tenéis sartenes de inducción?", limit=10, threshold=0.5
    )
    repository.search_by_name.assert_not_called()
    repository.get_by_ids.assert_awaited_once_with([42])

    materials = generator.generate.await_args.args[0]
    assert materials.context_text == "Sartén Inducción 28cm\n\nSartén de aluminio forjado"

    step_names = [step["name"] for step in response.timings["steps"]]
    assert step_names == ["Vector Search", "LLM Generation", "Product Lookup"]


@pytest.mark.asyncio
async def test_name_fallback_when_no_chunks(retriever, repository, generator, product_row):
    retriever.retrieve = AsyncMock(return_value=[])
    repository.search_by_name = AsyncMock(return_value=[product_row])
    service = _service(retriever, repository, generator, name_fallback_limit=5)

    response = await service.answer(ChatRequest(message="Sartén Inducción"))

    repository.search_by_name.assert_awaited_once_with("Sartén Inducción", limit=5)
    materials = generator.generate.await_args.args[0]
    assert materials.has_context is True
    assert materials.context_text == product_evidence_text(product_row)
    assert [p.id for p in response.products] == [42]
    assert response.sources == []


@pytest.mark.asyncio
async def test_no_evidence_still_answers(retriever, repository, generator):
    retriever.retrieve = AsyncMock(return_value=[])
    service = _service(retriever, repository, generator)

    response = await service.answer(ChatRequest(message="¿Vendéis bicicletas?"))

    materials = generator.generate.await_args.args[0]
    assert materials.context_text == NO_CONTEXT_MARKER
    assert response.products == []
    assert response.sources == []
    repository.get_by_ids.assert_not_called()


@pytest.mark.asyncio
async def test_name_fallback_failure_is_tolerated(retriever, repository, generator):
    retriever.retrieve = AsyncMock(return_value=[])
    repository.search_by_name = AsyncMock(side_effect=ConnectionError("database is down"))
    service = _service(retriever, repository, generator)

    response = await service.answer(ChatRequest(message="wok"))

    assert response.success is True
    assert response.products == []


@pytest.mark.asyncio
async def test_product_lookup_timeout(retriever, repository, generator, product_row):
    async def slow_lookup(ids):
        await asyncio.sleep(1)
        return [product_row]

    repository.get_by_ids = AsyncMock(side_effect=slow_lookup)
    service = _service(retriever, repository, generator, lookup_timeout=0.01)

    response = await service.answer(ChatRequest(message="sartén"))

    assert response.products == []
    assert response.sources == ["products_db"]


@pytest.mark.asyncio
async def test_product_lookup_failure(retriever, repository, generator):
    repository.get_by_ids = AsyncMock(side_effect=RuntimeError("boom"))
    service = _service(retriever, repository, generator)

    response = await service.answer(ChatRequest(message="sartén"))

    assert response.products == []


@pytest.mark.asyncio
async def test_web_evidence_adds_source(retriever, repository, generator):
    store = FakeWebContentStore([{
        "id": 7,
        "url": "https://blog.example.com/sartenes",
        "title": "Cómo curar una sartén",
        "content": "Antes del primer uso, cura la sartén con aceite.",
        "metadata": {},
    }])
    service = _service(retriever, repository, generator, web_search=WebContentSearch(store))

    response = await service.answer(ChatRequest(message="sartén"))

    assert response.sources == ["products_db", "web_content"]
    materials = generator.generate.await_args.args[0]
    assert "Cómo curar una sartén" in materials.context_text


@pytest.mark.asyncio
async def test_web_failure_is_tolerated(retriever, repository, generator):
    store = FakeWebContentStore(error=ConnectionError("timeout"))
    service = _service(retriever, repository, generator, web_search=WebContentSearch(store))

    response = await service.answer(ChatRequest(message="sartén"))

    assert response.sources == ["products_db"]


@pytest.mark.asyncio
async def test_generation_error_propagates(retriever, repository, generator):
    generator.generate = AsyncMock(side_effect=GenerationError("overloaded"))
    service = _service(retriever, repository, generator)

    with pytest.raises(GenerationError):
        await service.answer(ChatRequest(message="sartén"))


@pytest.mark.asyncio
async def test_history_round_trip(retriever, repository, generator):
    service = _service(retriever, repository, generator)
    request = ChatRequest.model_validate({
        "message": "¿Y en 24cm?",
        "conversationHistory": [
            {"role": "system", "content": "interno"},
            {"role": "user", "content": "¿sartenes?"},
            {"role": "assistant", "content": "Sí, de 28cm."},
        ],
    })

    response = await service.answer(request)

    materials = generator.generate.await_args.args[0]
    assert [turn["content"] for turn in materials.history] == ["¿sartenes?", "Sí, de 28cm."]
    assert [turn.role for turn in response.conversation_history] == [
        "user", "assistant", "user", "assistant"
    ]


def test_product_evidence_text(product_row):
    assert product_evidence_text(product_row) == (
        "Sartén Inducción 28cm - Sartenes - Inducción. "
        "Sartén de aluminio forjado apta para inducción."
    )
    assert product_evidence_text({"name": "Wok"}) == "Wok"


@pytest.mark.parametrize("kwargs", [{"match_count": 0}, {"lookup_timeout": 0}])
def test_zero_settings_are_rejected(retriever, repository, generator, kwargs):
    with pytest.raises(ValueError):
        CatalogChatService(
            vector_retriever=retriever,
            product_repository=repository,
            generator=generator,
            **kwargs,
        )
