"""
Context Assembly for Catalog Chat

Pure transformations between retrieval and generation:

- build_context(): retrieved evidence + bounded history → prompt materials
- build_reply(): generated text + looked-up products → structured reply

No I/O happens here. Persisting the resulting conversation is the caller's
responsibility.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from chefcopilot.core.config import settings
from chefcopilot.schemas.catalog import ProductSummary, RetrievedChunk
from chefcopilot.schemas.chat import ConversationTurn

logger = logging.getLogger(__name__)

NO_CONTEXT_MARKER = "No se encontraron productos relevantes en el catálogo."
FALLBACK_ANSWER = "Lo siento, no pude generar una respuesta."

SOURCE_PRODUCTS = "products_db"
SOURCE_WEB = "web_content"


# ========================================
# Result Types
# ========================================

class PromptMaterials(BaseModel):
    """Everything the generator needs for one completion."""

    query: str
    context_text: str
    history: List[Dict[str, str]] = Field(
        default_factory=list,
        description="Bounded non-system turns, oldest first, role + content only"
    )
    user_message: str
    has_context: bool = False


class ChatReply(BaseModel):
    """Structured answer handed back to the HTTP layer."""

    message: str
    products: List[ProductSummary] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    conversation_history: List[ConversationTurn] = Field(default_factory=list)


# ========================================
# Assembler
# ========================================

class ContextAssembler:
    """
    Builds generation input and the final reply.

    Usage:
    ------
    assembler = ContextAssembler()
    materials = assembler.build_context(query, chunks, history)
    answer = await generator.generate(materials)
    reply = assembler.build_reply(answer.text, product_rows, chunks, history, query)
    """

    def __init__(self, history_turns: Optional[int] = None):
        """
        Args:
            history_turns: Prior turns replayed to the generator (default 5)
        """
        self.history_turns = history_turns if history_turns is not None else settings.RAG_HISTORY_TURNS

    def bound_history(self, history: Iterable[ConversationTurn]) -> List[ConversationTurn]:
        """Drop system turns, keep the last ``history_turns``, original order."""
        turns = [turn for turn in history if turn.role != "system"]
        if self.history_turns <= 0:
            return []
        return turns[-self.history_turns:]

    def build_context(
        self,
        query: str,
        chunks: Sequence[RetrievedChunk],
        history: Iterable[ConversationTurn] = (),
        supplementary: Sequence[str] = ()
    ) -> PromptMaterials:
        """
        Assemble prompt materials.

        Args:
            query: Current user message
            chunks: Vector hits, in retrieval order
            history: Prior turns, oldest first
            supplementary: Extra evidence texts (name-match fallback, web
                snippets) appended after the chunk contents

        Returns:
            PromptMaterials. The context is never empty: with no evidence it
            holds an explicit marker.
        """
        pieces = _unique_texts([chunk.content for chunk in chunks] + list(supplementary))

        context_text = "\n\n".join(pieces) if pieces else NO_CONTEXT_MARKER

        bounded = self.bound_history(history)

        logger.debug(
            f"Context assembled: {len(pieces)} evidence piece(s), {len(bounded)} history turn(s)"
        )

        return PromptMaterials(
            query=query,
            context_text=context_text,
            history=[turn.for_llm() for turn in bounded],
            user_message=f"Contexto del catálogo:\n{context_text}\n\nPregunta del usuario: {query}",
            has_context=bool(pieces),
        )

    def build_reply(
        self,
        llm_output: Optional[str],
        products: Sequence[Union[Mapping[str, Any], ProductSummary]],
        chunks: Sequence[RetrievedChunk],
        history: Iterable[ConversationTurn],
        query: str,
        extra_sources: Sequence[str] = ()
    ) -> ChatReply:
        """
        Assemble the reply payload.

        Args:
            llm_output: Generated text (blank → fallback apology)
            products: Product rows (or summaries) referenced by the evidence
            chunks: Vector hits that cleared the threshold
            history: Prior turns as received
            query: Current user message
            extra_sources: Other evidence classes that contributed

        Returns:
            ChatReply with normalized products, sources and updated history
        """
        message = (llm_output or "").strip() or FALLBACK_ANSWER

        summaries = [
            p if isinstance(p, ProductSummary) else normalize_product(p)
            for p in products
        ]

        sources: List[str] = [SOURCE_PRODUCTS] if chunks else []
        for source in extra_sources:
            if source not in sources:
                sources.append(source)

        updated_history = [turn for turn in history if turn.role != "system"]
        updated_history.append(ConversationTurn(role="user", content=query))
        updated_history.append(
            ConversationTurn(role="assistant", content=message, products=summaries or None)
        )

        return ChatReply(
            message=message,
            products=summaries,
            sources=sources,
            conversation_history=updated_history,
        )


# ========================================
# Product Normalization
# ========================================

def normalize_product(row: Mapping[str, Any]) -> ProductSummary:
    """
    Map a product row onto the fixed display shape.

    Missing text fields become ``""``, missing optional fields ``None``;
    ``image`` prefers ``image_url`` over the legacy ``image`` column.
    """
    return ProductSummary(
        id=row["id"],
        name=_text(row.get("name")),
        price=_text(row.get("price")),
        category=_text(row.get("category")),
        subcategory=row.get("subcategory") or None,
        description=_text(row.get("description")),
        sku=_text(row.get("sku")),
        image=_text(row.get("image_url")) or _text(row.get("image")),
        product_url=_text(row.get("product_url")),
        date_add=_date_text(row.get("date_add")),
        colors=row.get("colors"),
        all_categories=row.get("all_categories"),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _date_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _unique_texts(texts: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    unique: List[str] = []
    for text in texts:
        if not text or not text.strip() or text in seen:
            continue
        seen.add(text)
        unique.append(text)
    return unique
