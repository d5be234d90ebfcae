"""add_documents_table

Revision ID: 8a41d0c3b7e2
Revises: 5c2e9a7d1f30
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8a41d0c3b7e2'
down_revision: Union[str, None] = '5c2e9a7d1f30'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the documents table.

    Text is extracted from the uploaded files by another service; this
    schema only stores it for substring search.
    """
    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('filename', sa.Text(), nullable=False, comment='Stored file name'),
        sa.Column('original_filename', sa.Text(), nullable=True),
        sa.Column('file_type', sa.String(length=50), nullable=True),
        sa.Column('extracted_text', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when the document was uploaded (UTC)'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_documents')),
        comment='Uploaded documents with extracted text'
    )


def downgrade() -> None:
    """Drop the documents table."""
    op.drop_table('documents')
