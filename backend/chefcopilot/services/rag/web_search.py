"""
Lexical Web Content Search

Substring search over ``web_content_index`` with client-side heuristic
scoring. Used for scraped pages that have no vector index.

Pipeline:
---------
1. Candidate filtering in the store: title OR content ILIKE %query%,
   status = active, optional content_type / product_id equality
2. Scoring with LexicalScorer
3. Stable sort by score (descending), truncate to limit
4. Snippet extraction around the first match
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.core.config import settings
from chefcopilot.models.catalog import WebContentItem, WebContentStatus
from chefcopilot.schemas.web_content import WebSearchResult
from chefcopilot.services.catalog import contains_pattern
from chefcopilot.services.processors.text_search import (
    LexicalScorer,
    extract_snippet,
    highlight_all,
)

logger = logging.getLogger(__name__)


# ========================================
# Store
# ========================================

class WebContentStore(Protocol):
    """
    Relational store for web content.

    Rows carry ``id``, ``url``, ``title``, ``content``, ``metadata``,
    ``content_type``, ``source``, ``product_id`` and ``last_updated_at``.
    """

    async def find_candidates(
        self,
        query: str,
        limit: int,
        content_type: Optional[str] = None,
        product_id: Optional[int] = None
    ) -> List[Dict[str, Any]]: ...

    async def get_item(self, item_id: int) -> Optional[Dict[str, Any]]: ...


class SqlWebContentStore:
    """WebContentStore over the ``web_content_index`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_candidates(
        self,
        query: str,
        limit: int,
        content_type: Optional[str] = None,
        product_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        pattern = contains_pattern(query)

        stmt = (
            select(WebContentItem)
            .where(WebContentItem.status == WebContentStatus.ACTIVE.value)
            .where(
                or_(
                    WebContentItem.title.ilike(pattern, escape="\\"),
                    WebContentItem.content.ilike(pattern, escape="\\"),
                )
            )
        )

        if content_type:
            stmt = stmt.where(WebContentItem.content_type == content_type)

        if product_id is not None:
            stmt = stmt.where(WebContentItem.product_id == product_id)

        result = await self.db.execute(stmt.order_by(WebContentItem.id).limit(limit))
        return [self._to_row(item) for item in result.scalars().all()]

    async def get_item(self, item_id: int) -> Optional[Dict[str, Any]]:
        item = await self.db.get(WebContentItem, item_id)
        if item is None or not item.is_active:
            return None
        return self._to_row(item)

    @staticmethod
    def _to_row(item: WebContentItem) -> Dict[str, Any]:
        return {
            "id": item.id,
            "url": item.url,
            "title": item.title,
            "content": item.content,
            "metadata": item.item_metadata,
            "content_type": item.content_type,
            "source": item.source,
            "product_id": item.product_id,
            "last_updated_at": item.last_updated_at,
        }


# ========================================
# Search Service
# ========================================

class WebContentSearch:
    """
    Lexical retriever for indexed web content.

    Usage:
    ------
    search = WebContentSearch(SqlWebContentStore(db))
    results = await search.search("aroma", limit=10, content_type="recipe")
    """

    def __init__(
        self,
        store: Optional[WebContentStore],
        scorer: Optional[LexicalScorer] = None,
        max_candidates: Optional[int] = None
    ):
        self.store = store
        self.scorer = scorer or LexicalScorer()
        self.max_candidates = max_candidates if max_candidates is not None else settings.LEXICAL_MAX_CANDIDATES

    async def search(
        self,
        query: str,
        limit: int = 10,
        content_type: Optional[str] = None,
        product_id: Optional[int] = None
    ) -> List[WebSearchResult]:
        """
        Search web content.

        Returns:
            Scored results, best first; empty for a blank query or a store failure
        """
        # Blank queries are rejected, but matching uses the raw text (spaces included)
        query = query or ""
        if not query.strip():
            return []

        if self.store is None:
            logger.warning("Web content search unavailable: no store configured")
            return []

        try:
            rows = await self.store.find_candidates(
                query,
                max(limit, self.max_candidates),
                content_type=content_type,
                product_id=product_id,
            )
        except Exception as e:
            logger.warning(f"Web content search failed, returning no results: {e}")
            return []

        scored = [(self.scorer.score(row, query), row) for row in rows or []]
        scored.sort(key=lambda pair: pair[0], reverse=True)

        results = [
            self._to_result(row, score, extract_snippet(row.get("content"), query))
            for score, row in scored[:limit]
        ]

        logger.info(f"Web content search '{query}': {len(rows or [])} candidate(s), {len(results)} returned")
        return results

    async def search_item(self, item_id: int, query: str) -> Optional[WebSearchResult]:
        """
        Score a single item against ``query``.

        The snippet is the full content with every occurrence emphasized.

        Returns:
            The result, or None if the item does not exist, is inactive, or the
            store failed
        """
        if self.store is None:
            logger.warning("Web content search unavailable: no store configured")
            return None

        query = query or ""

        try:
            row = await self.store.get_item(item_id)
        except Exception as e:
            logger.warning(f"Web content lookup for item {item_id} failed: {e}")
            return None

        if row is None:
            return None

        if not query.strip():
            return self._to_result(row, 0, row.get("content") or "")

        score = self.scorer.score(row, query)
        return self._to_result(row, score, highlight_all(row.get("content") or "", query))

    @staticmethod
    def _to_result(row: Dict[str, Any], score: int, snippet: str) -> WebSearchResult:
        return WebSearchResult(
            id=row["id"],
            url=row.get("url") or "",
            title=row.get("title") or "",
            snippet=snippet,
            metadata=row.get("metadata") or {},
            content_type=row.get("content_type"),
            source=row.get("source"),
            product_id=row.get("product_id"),
            last_updated_at=row.get("last_updated_at"),
            score=score,
        )
