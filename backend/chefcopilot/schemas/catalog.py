"""
Pydantic schemas for catalog data flowing through the retrieval pipeline.

- ProductRecord: the chunker's input (one catalog product)
- Chunk / ChunkMetadata: chunker output, persisted by the indexer
- RetrievedChunk: one vector-search hit at query time
- ProductSummary: fixed display shape attached to assistant replies
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChunkSource = Literal["name", "description", "combined"]


class ProductRecord(BaseModel):
    """A catalog product as seen by the chunker. Absent text fields are ``""``."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Product ID")
    name: str = Field(default="", description="Product name")
    description: str = Field(default="", description="Long description")
    category: str = Field(default="", description="Main category")
    subcategory: str = Field(default="", description="Subcategory")

    @field_validator("name", "description", "category", "subcategory", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ChunkMetadata(BaseModel):
    """Metadata stored alongside each chunk."""

    product_id: int
    product_name: str
    chunk_index: int = Field(ge=0, description="0-based, contiguous per product")
    source: ChunkSource


class Chunk(BaseModel):
    """A bounded span of product text prepared for embedding."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: ChunkMetadata


class RetrievedChunk(BaseModel):
    """A chunk returned by vector search for a single query."""

    id: Optional[int] = None
    product_id: Optional[int] = None
    content: str = ""
    similarity: float = Field(description="0-1, higher is more relevant")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_default(cls, v: Any) -> Dict[str, Any]:
        return v or {}


class ProductSummary(BaseModel):
    """
    Product as displayed next to an assistant answer.

    Every field is always present so the payload serializes the same way
    regardless of which columns the catalog row had populated.
    """

    id: int
    name: str = ""
    price: str = ""
    category: str = ""
    subcategory: Optional[str] = None
    description: str = ""
    sku: str = ""
    image: str = ""
    product_url: str = ""
    date_add: Optional[str] = None
    colors: Optional[Any] = None
    all_categories: Optional[Any] = None
