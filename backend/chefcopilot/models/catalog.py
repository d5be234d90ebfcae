"""
Catalog Models

Tables read and written by the retrieval pipeline:

1. Product (products) - the store catalog, synced from the shop elsewhere
2. ProductEmbedding (product_embeddings) - chunk text + vector per product
3. WebContentItem (web_content_index) - scraped pages for lexical search
4. Document (documents) - uploaded files with already-extracted text

Chunk Storage:
--------------
Each product owns chunk rows with chunk_index 0..N-1. Re-indexing a product
deletes all of its rows before inserting the new set, so a product never
carries chunks from two different runs.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from chefcopilot.core.config import settings
from chefcopilot.db.base import Base, TimestampMixin


# ================================
# Enums
# ================================

class WebContentStatus(str, enum.Enum):
    """
    Status of an indexed web page.

    Only ACTIVE rows are searchable; ERROR marks pages whose last fetch failed.
    """

    ACTIVE = "active"
    ERROR = "error"


# ================================
# Product
# ================================

class Product(Base):
    """
    A catalog product.

    Text fields feed the chunker; the remaining columns are only used to
    build the display payload attached to chat answers.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)

    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Display fields
    price: Mapped[Optional[Any]] = mapped_column(Numeric(12, 2), nullable=True)
    sku: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Legacy image column")
    product_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_add: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    colors: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)
    all_categories: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)


# ================================
# Product Embedding (chunk)
# ================================

class ProductEmbedding(Base):
    """
    One chunk of a product with its embedding vector.

    ``metadata`` is reserved by SQLAlchemy's declarative API, so the JSONB
    column is mapped as ``chunk_metadata``.
    """

    __tablename__ = "product_embeddings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # No FK: products are synced by an external job that may recreate rows
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    chunk_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Order of this chunk within the product (0-indexed)"
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    embedding = mapped_column(
        Vector(settings.EMBEDDING_DIMENSION),
        nullable=False,
        comment="Sentence embedding used for cosine similarity search"
    )

    chunk_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSONB, nullable=True)

    __table_args__ = (
        UniqueConstraint("product_id", "chunk_index", name="uq_product_embeddings_product_chunk"),
    )

    def __repr__(self) -> str:
        preview = self.content[:50] + "..." if self.content else ""
        return (
            f"ProductEmbedding(id={self.id}, product_id={self.product_id}, "
            f"index={self.chunk_index}, text='{preview}')"
        )


# ================================
# Web Content
# ================================

class WebContentItem(TimestampMixin, Base):
    """A scraped web page, searchable by substring on title or content."""

    __tablename__ = "web_content_index"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSONB, nullable=True)

    content_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    product_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WebContentStatus.ACTIVE.value,
        index=True,
        comment="active or error"
    )

    @property
    def is_active(self) -> bool:
        return self.status == WebContentStatus.ACTIVE.value


# ================================
# Documents
# ================================

class Document(Base):
    """
    An uploaded document whose text was extracted elsewhere.

    Only ``extracted_text`` and ``original_filename`` are searched; the file
    itself is never read here.
    """

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    filename: Mapped[str] = mapped_column(Text, nullable=False, comment="Stored file name")
    original_filename: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    extracted_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Timestamp when the document was uploaded (UTC)"
    )
