"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from chefcopilot.schemas.catalog import (
    Chunk,
    ChunkMetadata,
    ProductRecord,
    ProductSummary,
    RetrievedChunk,
)
from chefcopilot.schemas.chat import ChatRequest, ChatResponse, ConversationTurn
from chefcopilot.schemas.common import parse_request
from chefcopilot.schemas.documents import (
    DocumentSearchRequest,
    DocumentSearchResponse,
    DocumentSearchResult,
)
from chefcopilot.schemas.indexing import (
    IndexingProgress,
    IndexingRunRequest,
    IndexingRunResult,
    IndexingStatusResponse,
)
from chefcopilot.schemas.web_content import (
    WebSearchRequest,
    WebSearchResponse,
    WebSearchResult,
)

__all__ = [
    # Catalog
    "ProductRecord",
    "Chunk",
    "ChunkMetadata",
    "RetrievedChunk",
    "ProductSummary",
    # Chat
    "ConversationTurn",
    "ChatRequest",
    "ChatResponse",
    # Indexing
    "IndexingProgress",
    "IndexingStatusResponse",
    "IndexingRunRequest",
    "IndexingRunResult",
    # Web content
    "WebSearchRequest",
    "WebSearchResult",
    "WebSearchResponse",
    # Documents
    "DocumentSearchRequest",
    "DocumentSearchResult",
    "DocumentSearchResponse",
    # Helpers
    "parse_request",
]
