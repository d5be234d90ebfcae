"""
Pydantic schemas for uploaded document search.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class DocumentSearchRequest(BaseModel):
    """Body of a document text search."""

    query: str = Field(description="Raw search text", min_length=1)
    limit: int = Field(default=5, ge=1, le=50)

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class DocumentSearchResult(BaseModel):
    """One matching document with a plain-text excerpt."""

    id: int
    filename: str = Field(default="", description="Name the file was uploaded with")
    file_type: Optional[str] = None
    snippet: str = ""
    created_at: Optional[datetime] = None
    score: int = Field(default=0, description="Heuristic relevance, higher is better")


class DocumentSearchResponse(BaseModel):
    """Response schema for document search."""

    success: bool = True
    query: str
    results: List[DocumentSearchResult]
    total: int
