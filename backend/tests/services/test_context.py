"""
Tests for context assembly.

This module tests:
- Evidence concatenation and the no-context marker
- History bounding and system-turn removal
- Reply assembly (sources, fallback text, updated history)
- Product normalization to the display shape
"""

from datetime import datetime

import pytest

from chefcopilot.schemas.catalog import RetrievedChunk
from chefcopilot.schemas.chat import ConversationTurn
from chefcopilot.services.rag.context import (
    FALLBACK_ANSWER,
    NO_CONTEXT_MARKER,
    ContextAssembler,
    normalize_product,
)


def _chunk(chunk_id, content, product_id=1, similarity=0.8):
    return RetrievedChunk(id=chunk_id, product_id=product_id, content=content, similarity=similarity)


@pytest.fixture
def eight_turns():
    """Eight prior turns, one of them a system turn."""
    return [
        ConversationTurn(role="system", content="s0"),
        ConversationTurn(role="user", content="u1"),
        ConversationTurn(role="assistant", content="a2"),
        ConversationTurn(role="user", content="u3"),
        ConversationTurn(role="assistant", content="a4"),
        ConversationTurn(role="user", content="u5"),
        ConversationTurn(role="assistant", content="a6"),
        ConversationTurn(role="user", content="u7"),
    ]


# ========================================
# build_context
# ========================================

class TestBuildContext:

    def test_joins_unique_chunks_in_order(self):
        chunks = [_chunk(1, "Sartén 28cm"), _chunk(2, "Olla 5L"), _chunk(3, "Sartén 28cm")]

        materials = ContextAssembler().build_context("sartenes", chunks)

        assert materials.context_text == "Sartén 28cm\n\nOlla 5L"
        assert materials.has_context is True

    def test_empty_evidence_uses_marker(self):
        materials = ContextAssembler().build_context("¿tenéis wok?", [])

        assert materials.context_text == NO_CONTEXT_MARKER
        assert materials.has_context is False
        assert NO_CONTEXT_MARKER in materials.user_message

    def test_user_message_format(self):
        materials = ContextAssembler().build_context("¿precio?", [_chunk(1, "Cazo 16cm")])

        assert materials.user_message == (
            "Contexto del catálogo:\nCazo 16cm\n\nPregunta del usuario: ¿precio?"
        )

    def test_supplementary_evidence_follows_chunks(self):
        materials = ContextAssembler().build_context(
            "wok", [_chunk(1, "Wok 32cm")], supplementary=["Guía de woks", "", "Wok 32cm"]
        )

        assert materials.context_text == "Wok 32cm\n\nGuía de woks"

    def test_history_bounded_to_last_five_non_system(self, eight_turns):
        materials = ContextAssembler().build_context("u8", [], eight_turns)

        assert [turn["content"] for turn in materials.history] == ["u3", "a4", "u5", "a6", "u7"]
        assert all(turn["role"] != "system" for turn in materials.history)
        assert set(materials.history[0]) == {"role", "content"}

    def test_history_bound_is_configurable(self, eight_turns):
        assert ContextAssembler(history_turns=2).bound_history(eight_turns)[0].content == "a6"
        assert ContextAssembler(history_turns=0).bound_history(eight_turns) == []


# ========================================
# build_reply
# ========================================

class TestBuildReply:

    def test_sources_and_products(self, product_row):
        reply = ContextAssembler().build_reply(
            "Tenemos la sartén de 28cm.", [product_row], [_chunk(1, "Sartén")], [], "¿sartenes?"
        )

        assert reply.sources == ["products_db"]
        assert [p.id for p in reply.products] == [42]
        assert reply.message == "Tenemos la sartén de 28cm."

    def test_no_chunks_means_no_sources(self):
        reply = ContextAssembler().build_reply("Respuesta", [], [], [], "hola")

        assert reply.sources == []
        assert reply.products == []

    def test_extra_sources_are_deduplicated(self):
        reply = ContextAssembler().build_reply(
            "Respuesta", [], [_chunk(1, "x")], [], "hola",
            extra_sources=["web_content", "products_db", "web_content"],
        )

        assert reply.sources == ["products_db", "web_content"]

    @pytest.mark.parametrize("output", [None, "", "   "])
    def test_blank_output_uses_fallback(self, output):
        reply = ContextAssembler().build_reply(output, [], [], [], "hola")
        assert reply.message == FALLBACK_ANSWER

    def test_updated_history(self, eight_turns, product_row):
        reply = ContextAssembler().build_reply("Respuesta", [product_row], [], eight_turns, "u8")

        history = reply.conversation_history
        assert len(history) == 9
        assert all(turn.role != "system" for turn in history)
        assert history[-2].role == "user"
        assert history[-2].content == "u8"
        assert history[-1].role == "assistant"
        assert history[-1].content == "Respuesta"
        assert history[-1].products[0].id == 42


# ========================================
# normalize_product
# ========================================

class TestNormalizeProduct:

    def test_full_row(self, product_row):
        summary = normalize_product(product_row)

        assert summary.name == "Sartén Inducción 28cm"
        assert summary.price == "34.90"
        assert summary.image == "https://cdn.example.com/srt28.jpg"
        assert summary.colors == ["negro"]

    def test_missing_fields_have_defaults(self):
        summary = normalize_product({"id": 5})
        data = summary.model_dump()

        assert data["name"] == ""
        assert data["price"] == ""
        assert data["sku"] == ""
        assert data["image"] == ""
        assert data["subcategory"] is None
        assert data["date_add"] is None
        assert data["colors"] is None
        assert set(data) == {
            "id", "name", "price", "category", "subcategory", "description", "sku",
            "image", "product_url", "date_add", "colors", "all_categories",
        }

    def test_legacy_image_column(self):
        assert normalize_product({"id": 5, "image": "old.jpg"}).image == "old.jpg"

    def test_date_is_iso_formatted(self):
        summary = normalize_product({"id": 5, "date_add": datetime(2024, 3, 1, 10, 30)})
        assert summary.date_add == "2024-03-01T10:30:00"
