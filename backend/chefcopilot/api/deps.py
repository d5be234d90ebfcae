"""
Service Dependencies for FastAPI Routes

Each provider builds one service for the current request. Tests replace
them through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends

from chefcopilot.core.exceptions import DependencyUnavailableError
from chefcopilot.db.deps import DBSession
from chefcopilot.services.catalog import ProductRepository
from chefcopilot.services.indexing.product_indexer import ProductIndexer
from chefcopilot.services.indexing.progress import IndexingProgressTracker, SqlIndexedIdSource
from chefcopilot.services.processors.embedder import EmbeddingService, get_embedding_service
from chefcopilot.services.rag.chat_service import CatalogChatService
from chefcopilot.services.rag.document_search import DocumentSearch, SqlDocumentStore
from chefcopilot.services.rag.generator import get_generator
from chefcopilot.services.rag.retriever import create_retriever
from chefcopilot.services.rag.web_search import SqlWebContentStore, WebContentSearch

logger = logging.getLogger(__name__)


async def get_optional_embedder() -> Optional[EmbeddingService]:
    """
    The shared embedding service, or None if the model cannot be loaded.

    Chat keeps working without vector evidence when this returns None.
    """
    try:
        return await get_embedding_service()
    except Exception as e:
        logger.warning(f"Embedding service unavailable: {e}")
        return None


def get_web_search(db: DBSession) -> WebContentSearch:
    return WebContentSearch(SqlWebContentStore(db))


def get_document_search(db: DBSession) -> DocumentSearch:
    return DocumentSearch(SqlDocumentStore(db))


def get_chat_service(
    db: DBSession,
    embedder: Optional[EmbeddingService] = Depends(get_optional_embedder),
    web_search: WebContentSearch = Depends(get_web_search),
) -> CatalogChatService:
    """
    Build the chat pipeline for one request.

    Raises:
        ConfigurationError: If the generator has no API key
    """
    return CatalogChatService(
        vector_retriever=create_retriever(embedder, db),
        product_repository=ProductRepository(db),
        generator=get_generator(),
        web_search=web_search,
    )


def get_product_repository(db: DBSession) -> ProductRepository:
    return ProductRepository(db)


def get_indexed_id_source(db: DBSession) -> SqlIndexedIdSource:
    return SqlIndexedIdSource(db)


def get_progress_tracker() -> IndexingProgressTracker:
    return IndexingProgressTracker()


def get_product_indexer(
    db: DBSession,
    embedder: Optional[EmbeddingService] = Depends(get_optional_embedder),
) -> ProductIndexer:
    """
    Build an indexer for a manual run.

    Raises:
        DependencyUnavailableError: If the embedding model cannot be loaded
    """
    if embedder is None:
        raise DependencyUnavailableError("Embedding service unavailable; cannot index products")
    return ProductIndexer(db, embedder)
