"""
Web content search API endpoints.

Lexical search over the indexed web content (recipes, blog posts, guides)
that complements the product catalog.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from chefcopilot.api.deps import get_web_search
from chefcopilot.schemas.common import parse_request
from chefcopilot.schemas.web_content import (
    WebSearchRequest,
    WebSearchResponse,
    WebSearchResult,
)
from chefcopilot.services.rag.web_search import WebContentSearch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/web-content", tags=["Web Content"])


@router.get("/search", response_model=WebSearchResponse)
async def search_web_content(
    query: Optional[str] = Query(default=None, description="Search text"),
    limit: Optional[int] = Query(default=None, description="Max results (1-100)"),
    content_type: Optional[str] = Query(default=None),
    product_id: Optional[int] = Query(default=None),
    web_search: WebContentSearch = Depends(get_web_search),
):
    """
    Search active web content by title and body.

    Results are ordered by heuristic score, best first, and each carries a
    snippet around the first match.

    Raises:
        InvalidInputError: If ``query`` is missing or blank (400)
    """
    params = {
        "query": query,
        "limit": limit,
        "content_type": content_type,
        "product_id": product_id,
    }
    request = parse_request(
        WebSearchRequest,
        {key: value for key, value in params.items() if value is not None},
    )

    results = await web_search.search(
        request.query,
        limit=request.limit,
        content_type=request.content_type,
        product_id=request.product_id,
    )

    return WebSearchResponse(query=request.query, results=results, total=len(results))


@router.get("/{item_id}", response_model=WebSearchResult)
async def get_web_content_item(
    item_id: int,
    query: str = Query(default="", description="Text to highlight in the content"),
    web_search: WebContentSearch = Depends(get_web_search),
):
    """
    Fetch one active item with every occurrence of ``query`` highlighted.

    Raises:
        HTTPException: 404 if the item does not exist or is not active
    """
    result = await web_search.search_item(item_id, query)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Web content item {item_id} not found"
        )

    return result
