"""
Pydantic schemas for incremental indexing.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IndexingState = Literal["completed", "in_progress"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IndexingProgress(_CamelModel):
    """Derived snapshot of how much of the catalog has chunks in the store."""

    total_products: int = Field(ge=0)
    total_indexed: int = Field(ge=0, description="Distinct product ids with chunks")
    remaining: int = Field(ge=0)
    percentage: int = Field(ge=0, le=100)
    status: IndexingState
    message: str = ""


class IndexingStatusResponse(IndexingProgress):
    """Progress plus the raw chunk row count."""

    success: bool = True
    total_chunks: int = Field(default=0, ge=0)


class IndexingRunRequest(_CamelModel):
    """Body of a manual indexing run."""

    limit: Optional[int] = Field(default=None, ge=1, le=1000, description="Max products this run")


class IndexingRunResult(_CamelModel):
    """Outcome of one incremental indexing run."""

    success: bool = True
    indexed: int = Field(default=0, description="Products chunked and stored this run")
    chunks_created: int = 0
    attempted: int = Field(default=0, description="Unindexed products selected this run")
    errors: List[str] = Field(default_factory=list)
    progress: Optional[IndexingProgress] = None
