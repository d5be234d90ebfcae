"""
Catalog Chat Service

Orchestrates one chat turn end to end:

1. Vector retrieval over product chunks
2. Exact-name fallback when no product was found semantically
3. Optional lexical evidence from indexed web content
4. Prompt assembly and answer generation
5. Product lookup (bounded by a timeout) and reply assembly

Each evidence path fails independently and degrades to "less context".
Only a generation failure reaches the caller.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

from chefcopilot.core.config import settings
from chefcopilot.schemas.chat import ChatRequest, ChatResponse
from chefcopilot.services.catalog import ProductRepository
from chefcopilot.services.rag.context import SOURCE_WEB, ContextAssembler
from chefcopilot.services.rag.generator import AnswerGenerator
from chefcopilot.services.rag.retriever import VectorRetriever, unique_product_ids
from chefcopilot.services.rag.web_search import WebContentSearch

logger = logging.getLogger(__name__)


def product_evidence_text(row: Mapping[str, Any]) -> str:
    """``name - category - subcategory. description`` for a name-matched product."""
    text = row.get("name") or ""
    if row.get("category"):
        text += f" - {row['category']}"
    if row.get("subcategory"):
        text += f" - {row['subcategory']}"
    if row.get("description"):
        text += f". {row['description']}"
    return text.strip()


class CatalogChatService:
    """
    Catalog-grounded chat.

    Usage:
    ------
    service = CatalogChatService(
        vector_retriever=VectorRetriever(embedder, PgVectorSearch(db)),
        product_repository=ProductRepository(db),
        generator=get_generator(),
        web_search=WebContentSearch(SqlWebContentStore(db)),
    )
    response = await service.answer(ChatRequest(message="¿Tenéis sartenes de inducción?"))
    """

    def __init__(
        self,
        vector_retriever: VectorRetriever,
        product_repository: ProductRepository,
        generator: AnswerGenerator,
        assembler: Optional[ContextAssembler] = None,
        web_search: Optional[WebContentSearch] = None,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None,
        name_fallback_limit: Optional[int] = None,
        lookup_timeout: Optional[float] = None,
        web_result_limit: int = 3
    ):
        self.vector_retriever = vector_retriever
        self.products = product_repository
        self.generator = generator
        self.assembler = assembler or ContextAssembler()
        self.web_search = web_search

        self.match_threshold = match_threshold if match_threshold is not None else settings.RAG_MATCH_THRESHOLD
        self.match_count = match_count if match_count is not None else settings.RAG_MATCH_COUNT
        self.name_fallback_limit = (
            name_fallback_limit if name_fallback_limit is not None else settings.RAG_NAME_FALLBACK_LIMIT
        )
        self.lookup_timeout = (
            lookup_timeout if lookup_timeout is not None else settings.RAG_PRODUCT_LOOKUP_TIMEOUT_SECONDS
        )
        self.web_result_limit = web_result_limit

        if self.match_count < 1:
            raise ValueError(f"match_count must be >= 1, got {self.match_count}")
        if self.lookup_timeout <= 0:
            raise ValueError(f"lookup_timeout must be > 0, got {self.lookup_timeout}")

    async def answer(self, request: ChatRequest) -> ChatResponse:
        """
        Answer one chat message.

        Raises:
            GenerationError: If the answer could not be generated
        """
        started = time.perf_counter()
        steps: List[Dict[str, Any]] = []

        # Step 1: Vector retrieval
        step_start = time.perf_counter()
        chunks = await self.vector_retriever.retrieve(
            request.message,
            limit=self.match_count,
            threshold=self.match_threshold,
        )
        product_ids = unique_product_ids(chunks)
        steps.append(_step("Vector Search", step_start))

        # Step 2: Exact-name fallback
        supplementary: List[str] = []
        if not product_ids:
            step_start = time.perf_counter()
            fallback_ids, fallback_texts = await self._name_fallback(request.message)
            product_ids.extend(fallback_ids)
            supplementary.extend(fallback_texts)
            steps.append(_step("Name Search", step_start))

        # Step 3: Web content evidence
        extra_sources: List[str] = []
        if self.web_search is not None:
            step_start = time.perf_counter()
            web_texts = await self._web_evidence(request.message)
            if web_texts:
                supplementary.extend(web_texts)
                extra_sources.append(SOURCE_WEB)
            steps.append(_step("Web Content Search", step_start))

        # Step 4: Generation
        step_start = time.perf_counter()
        materials = self.assembler.build_context(
            request.message,
            chunks,
            request.conversation_history,
            supplementary=supplementary,
        )
        generated = await self.generator.generate(materials)
        steps.append(_step("LLM Generation", step_start))

        # Step 5: Products for display
        step_start = time.perf_counter()
        product_rows = await self._lookup_products(product_ids)
        steps.append(_step("Product Lookup", step_start))

        reply = self.assembler.build_reply(
            generated.text,
            product_rows,
            chunks,
            request.conversation_history,
            request.message,
            extra_sources=extra_sources,
        )

        total_ms = _elapsed_ms(started)
        logger.info(
            f"Chat answered in {total_ms} ms: {len(chunks)} chunk(s), "
            f"{len(reply.products)} product(s), sources={reply.sources}"
        )

        return ChatResponse(
            success=True,
            message=reply.message,
            conversation_history=reply.conversation_history,
            products=reply.products,
            sources=reply.sources,
            timings={"total_ms": total_ms, "steps": steps},
        )

    # ========================================
    # Evidence Paths
    # ========================================

    async def _name_fallback(self, message: str) -> Tuple[List[int], List[str]]:
        try:
            rows = await self.products.search_by_name(message, limit=self.name_fallback_limit)
        except Exception as e:
            logger.warning(f"Name search fallback failed: {e}")
            return [], []

        ids = [row["id"] for row in rows]
        texts = [text for text in (product_evidence_text(row) for row in rows) if text]

        if ids:
            logger.info(f"Name search fallback matched {len(ids)} product(s)")
        return ids, texts

    async def _web_evidence(self, message: str) -> List[str]:
        results = await self.web_search.search(message, limit=self.web_result_limit)
        return [
            f"{result.title}\n{result.snippet}".strip()
            for result in results
            if result.title or result.snippet
        ]

    async def _lookup_products(self, product_ids: List[int]) -> List[Dict[str, Any]]:
        if not product_ids:
            return []

        try:
            return await asyncio.wait_for(
                self.products.get_by_ids(product_ids),
                timeout=self.lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Product lookup timed out after {self.lookup_timeout}s; answering without products")
        except Exception as e:
            logger.warning(f"Product lookup failed; answering without products: {e}")
        return []


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _step(name: str, start: float) -> Dict[str, Any]:
    return {"name": name, "duration_ms": _elapsed_ms(start)}
