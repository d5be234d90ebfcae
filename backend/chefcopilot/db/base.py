"""
Database Base Classes

Foundation for the catalog ORM models.

Key Concepts:
--------------
1. DeclarativeBase: SQLAlchemy's base class that enables ORM functionality
2. Naming convention: deterministic constraint names across environments
3. TimestampMixin: created/updated columns for tables this service writes
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, registry


# ================================
# Naming Convention for Constraints
# ================================
# - ix_product_embeddings_product_id: Index on 'product_embeddings.product_id'
# - uq_web_content_index_url: Unique constraint on 'web_content_index.url'
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

orm_registry = registry(metadata=metadata)


# ================================
# Base DeclarativeBase Class
# ================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        class Product(Base):
            __tablename__ = "products"
            id: Mapped[int] = mapped_column(primary_key=True)
    """

    registry = orm_registry
    metadata = metadata

    __tablename__: str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={getattr(self, 'id', None)})"

    def dict(self) -> dict[str, Any]:
        """Column name → value, for logging and tests."""
        return {
            column.name: getattr(self, column.key, None)
            for column in self.__table__.columns
        }


# ================================
# Timestamp Mixin
# ================================
class TimestampMixin:
    """
    Adds timezone-aware UTC ``created_at`` / ``last_updated_at`` columns.

    ``last_updated_at`` is refreshed on every UPDATE issued through the ORM.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Timestamp when record was created (UTC)"
    )

    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Timestamp when record was last updated (UTC)"
    )
