"""
Document search API endpoints.

Substring search over text already extracted from uploaded documents.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from chefcopilot.api.deps import get_document_search
from chefcopilot.schemas.common import parse_request
from chefcopilot.schemas.documents import DocumentSearchRequest, DocumentSearchResponse
from chefcopilot.services.rag.document_search import DocumentSearch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post("/search", response_model=DocumentSearchResponse)
async def search_documents(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    document_search: DocumentSearch = Depends(get_document_search),
):
    """
    Search uploaded documents by extracted text and file name.

    Args:
        payload: ``{"query": str, "limit": int}`` (limit defaults to 5)

    Raises:
        InvalidInputError: If ``query`` is missing or blank (400)
    """
    request = parse_request(DocumentSearchRequest, payload)

    results = await document_search.search(request.query, limit=request.limit)

    return DocumentSearchResponse(query=request.query, results=results, total=len(results))
