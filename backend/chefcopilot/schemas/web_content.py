"""
Pydantic schemas for indexed web content search.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class WebSearchRequest(BaseModel):
    """Query parameters for a lexical web content search."""

    query: str = Field(description="Raw search text", min_length=1)
    limit: int = Field(default=10, ge=1, le=100)
    content_type: Optional[str] = Field(default=None, description="Exact content_type filter")
    product_id: Optional[int] = Field(default=None, description="Exact product_id filter")

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class WebSearchResult(BaseModel):
    """One scored web content item."""

    id: int
    url: str
    title: str = ""
    snippet: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    content_type: Optional[str] = None
    source: Optional[str] = None
    product_id: Optional[int] = None
    last_updated_at: Optional[datetime] = None
    score: int = Field(default=0, description="Heuristic relevance, higher is better")


class WebSearchResponse(BaseModel):
    """Response schema for web content search."""

    success: bool = True
    query: str
    results: List[WebSearchResult]
    total: int
