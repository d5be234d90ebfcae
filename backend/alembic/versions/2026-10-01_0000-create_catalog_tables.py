"""create_catalog_tables_products_embeddings_web_content

Revision ID: 5c2e9a7d1f30
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5c2e9a7d1f30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the catalog retrieval schema.

    Creates the following tables:
    1. products - store catalog (synced by an external job)
    2. product_embeddings - product chunks with 384-dim vectors
    3. web_content_index - scraped pages for lexical search

    Indexes:
    - HNSW index for cosine similarity over product_embeddings.embedding
    - B-tree indexes for product_id lookups and status/content_type filters
    """

    # ================================
    # Enable pgvector extension if not already enabled
    # ================================
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    # ================================
    # Create products table
    # ================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False, comment='Shop product id'),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('subcategory', sa.String(length=255), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('sku', sa.String(length=128), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image', sa.Text(), nullable=True, comment='Legacy image column'),
        sa.Column('product_url', sa.Text(), nullable=True),
        sa.Column('date_add', sa.DateTime(timezone=True), nullable=True),
        sa.Column('colors', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('all_categories', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_products')),
    )
    op.create_index('ix_products_category', 'products', ['category'])

    # ================================
    # Create product_embeddings table
    # ================================
    op.create_table(
        'product_embeddings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False, comment='Order of this chunk within the product (0-indexed)'),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_product_embeddings')),
        sa.UniqueConstraint('product_id', 'chunk_index', name='uq_product_embeddings_product_chunk'),
        comment='Product chunks with embeddings for catalog retrieval'
    )

    # 384 dimensions for the multilingual MiniLM model
    op.execute('ALTER TABLE product_embeddings ADD COLUMN embedding vector(384) NOT NULL')
    op.execute(
        "COMMENT ON COLUMN product_embeddings.embedding IS "
        "'Sentence embedding used for cosine similarity search'"
    )

    op.create_index('ix_product_embeddings_product_id', 'product_embeddings', ['product_id'])

    # m=16 (max connections per layer), ef_construction=64 (quality during build)
    op.execute("""
        CREATE INDEX ix_product_embeddings_embedding_hnsw
        ON product_embeddings
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 64)
    """)

    # ================================
    # Create web_content_index table
    # ================================
    op.create_table(
        'web_content_index',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was created (UTC)'),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was last updated (UTC)'),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('content_type', sa.String(length=50), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active', comment='active or error'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_web_content_index')),
        sa.UniqueConstraint('url', name=op.f('uq_web_content_index_url')),
        comment='Scraped web pages searchable by substring'
    )
    op.create_index('ix_web_content_index_content_type', 'web_content_index', ['content_type'])
    op.create_index('ix_web_content_index_product_id', 'web_content_index', ['product_id'])
    op.create_index('ix_web_content_index_status', 'web_content_index', ['status'])


def downgrade() -> None:
    """Drop the catalog retrieval schema (the vector extension is left installed)."""
    op.drop_index('ix_web_content_index_status', table_name='web_content_index')
    op.drop_index('ix_web_content_index_product_id', table_name='web_content_index')
    op.drop_index('ix_web_content_index_content_type', table_name='web_content_index')
    op.drop_table('web_content_index')

    op.execute('DROP INDEX IF EXISTS ix_product_embeddings_embedding_hnsw')
    op.drop_index('ix_product_embeddings_product_id', table_name='product_embeddings')
    op.drop_table('product_embeddings')

    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')
