"""
RAG (Retrieval-Augmented Generation) Services

This package contains all services for the catalog chat pipeline:
- Vector retrieval over product chunks
- Lexical search over indexed web content
- Lexical search over uploaded document text
- Context assembly
- Generation (Claude integration)
- Chat orchestration
"""

from chefcopilot.services.rag.chat_service import CatalogChatService
from chefcopilot.services.rag.document_search import DocumentSearch, SqlDocumentStore
from chefcopilot.services.rag.context import ChatReply, ContextAssembler, PromptMaterials, normalize_product
from chefcopilot.services.rag.generator import AnswerGenerator, GeneratedAnswer, get_generator
from chefcopilot.services.rag.retriever import (
    PgVectorSearch,
    VectorRetriever,
    create_retriever,
    unique_product_ids,
)
from chefcopilot.services.rag.web_search import SqlWebContentStore, WebContentSearch

__all__ = [
    "CatalogChatService",
    "ContextAssembler",
    "PromptMaterials",
    "ChatReply",
    "normalize_product",
    "AnswerGenerator",
    "GeneratedAnswer",
    "get_generator",
    "VectorRetriever",
    "PgVectorSearch",
    "create_retriever",
    "unique_product_ids",
    "WebContentSearch",
    "SqlWebContentStore",
    "DocumentSearch",
    "SqlDocumentStore",
]
