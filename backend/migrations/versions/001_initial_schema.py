"""Initial schema: log file catalog and its change feed.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from logbackup.config import get_settings

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

catalog_table = get_settings().catalog_table


def upgrade() -> None:
    # Catalog: one row per (instance, log file)
    op.create_table(
        catalog_table,
        sa.Column("instance_id", sa.String(255), primary_key=True),
        sa.Column("log_file_name", sa.String(1024), primary_key=True),
        sa.Column("size", sa.BigInteger, nullable=False),
        sa.Column("last_written", sa.BigInteger, nullable=False),
        sa.Column("last_backup", sa.BigInteger, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Change feed
    op.create_table(
        "catalog_changes",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("event_name", sa.String(10), nullable=False),
        sa.Column("instance_id", sa.String(255), nullable=False),
        sa.Column("log_file_name", sa.String(1024), nullable=False),
        sa.Column("old_image", postgresql.JSONB),
        sa.Column("new_image", postgresql.JSONB, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True)),
    )
    op.create_index("idx_change_undelivered", "catalog_changes", ["delivered_at", "id"])


def downgrade() -> None:
    op.drop_index("idx_change_undelivered", table_name="catalog_changes")
    op.drop_table("catalog_changes")
    op.drop_table(catalog_table)
