"""
Lexical Document Search

Substring search over the text already extracted from uploaded documents
(manuals, spec sheets, care guides). Shares the web content scorer: the
original file name plays the title's part and the extracted text the body's.

Pipeline:
---------
1. Candidate filtering in the store: extracted_text OR original_filename
   ILIKE %query%
2. Scoring with LexicalScorer, stable sort, truncate to limit
3. Plain snippet: DOCUMENT_SNIPPET_WINDOW chars either side of the first
   match, or the first LEXICAL_SNIPPET_LENGTH chars when the text has none
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chefcopilot.core.config import settings
from chefcopilot.models.catalog import Document
from chefcopilot.schemas.documents import DocumentSearchResult
from chefcopilot.services.catalog import contains_pattern
from chefcopilot.services.processors.text_search import LexicalScorer, extract_snippet

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Rows carry ``id``, ``original_filename``, ``file_type``, ``extracted_text``, ``created_at``."""

    async def find_candidates(self, query: str, limit: int) -> List[Dict[str, Any]]: ...


class SqlDocumentStore:
    """DocumentStore over the ``documents`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_candidates(self, query: str, limit: int) -> List[Dict[str, Any]]:
        pattern = contains_pattern(query)

        stmt = (
            select(Document)
            .where(
                or_(
                    Document.extracted_text.ilike(pattern, escape="\\"),
                    Document.original_filename.ilike(pattern, escape="\\"),
                )
            )
            .order_by(Document.id)
            .limit(limit)
        )

        result = await self.db.execute(stmt)
        return [
            {
                "id": doc.id,
                "original_filename": doc.original_filename or doc.filename,
                "file_type": doc.file_type,
                "extracted_text": doc.extracted_text,
                "created_at": doc.created_at,
            }
            for doc in result.scalars().all()
        ]


class DocumentSearch:
    """
    Lexical retriever for uploaded documents.

    Usage:
    ------
    search = DocumentSearch(SqlDocumentStore(db))
    results = await search.search("garantía", limit=5)
    """

    def __init__(
        self,
        store: Optional[DocumentStore],
        scorer: Optional[LexicalScorer] = None,
        max_candidates: Optional[int] = None,
        snippet_window: Optional[int] = None
    ):
        self.store = store
        self.scorer = scorer or LexicalScorer()
        self.max_candidates = max_candidates if max_candidates is not None else settings.LEXICAL_MAX_CANDIDATES
        self.snippet_window = (
            snippet_window if snippet_window is not None else settings.DOCUMENT_SNIPPET_WINDOW
        )

    async def search(self, query: str, limit: Optional[int] = None) -> List[DocumentSearchResult]:
        """
        Search document text and file names.

        Returns:
            Scored results, best first; empty for a blank query or a store failure
        """
        limit = limit if limit is not None else settings.DOCUMENT_SEARCH_LIMIT

        query = query or ""
        if not query.strip() or limit < 1:
            return []

        if self.store is None:
            logger.warning("Document search unavailable: no store configured")
            return []

        try:
            rows = await self.store.find_candidates(query, max(limit, self.max_candidates))
        except Exception as e:
            logger.warning(f"Document search failed, returning no results: {e}")
            return []

        scored = [
            (self.scorer.score({"title": row.get("original_filename"), "content": row.get("extracted_text")}, query), row)
            for row in rows or []
        ]
        scored.sort(key=lambda pair: pair[0], reverse=True)

        results = [
            DocumentSearchResult(
                id=row["id"],
                filename=row.get("original_filename") or "",
                file_type=row.get("file_type"),
                snippet=extract_snippet(
                    row.get("extracted_text"),
                    query,
                    window=self.snippet_window,
                    emphasize=False,
                ),
                created_at=row.get("created_at"),
                score=score,
            )
            for score, row in scored[:limit]
        ]

        logger.info(f"Document search '{query}': {len(rows or [])} candidate(s), {len(results)} returned")
        return results
