"""create religions, topics and topic_details tables

Revision ID: 4c1e2a7d9b10
Revises:
Create Date: 2025-09-20 10:12:41.118204
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4c1e2a7d9b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "religions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("name_en", sa.String(length=120), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#8B4513"),
        sa.Column("icon", sa.String(length=240), nullable=True),
        sa.Column("sync_status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_religions_name", "religions", ["name"], unique=True)
    op.create_index("ix_religions_sync_status", "religions", ["sync_status"])
    op.create_index("ix_religions_updated_at", "religions", ["updated_at"])

    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "religion_id",
            sa.Integer(),
            sa.ForeignKey("religions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("title_en", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("image_alt", sa.String(length=240), nullable=True),
        sa.Column("sync_status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_topics_religion_id", "topics", ["religion_id"])
    op.create_index("ix_topics_sync_status", "topics", ["sync_status"])
    op.create_index("ix_topics_updated_at", "topics", ["updated_at"])

    op.create_table(
        "topic_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "topic_id",
            sa.Integer(),
            sa.ForeignKey("topics.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("explanation", sa.Text(), nullable=False),
        sa.Column("bible_verses", sa.Text(), nullable=True),
        sa.Column("key_points", sa.Text(), nullable=True),
        sa.Column("references", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("sync_status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("version >= 1", name="ck_topic_details_version_positive"),
    )
    op.create_index("ix_topic_details_topic_id", "topic_details", ["topic_id"], unique=True)
    op.create_index("ix_topic_details_sync_status", "topic_details", ["sync_status"])
    op.create_index("ix_topic_details_updated_at", "topic_details", ["updated_at"])


def downgrade() -> None:
    # children first
    op.drop_index("ix_topic_details_updated_at", table_name="topic_details")
    op.drop_index("ix_topic_details_sync_status", table_name="topic_details")
    op.drop_index("ix_topic_details_topic_id", table_name="topic_details")
    op.drop_table("topic_details")

    op.drop_index("ix_topics_updated_at", table_name="topics")
    op.drop_index("ix_topics_sync_status", table_name="topics")
    op.drop_index("ix_topics_religion_id", table_name="topics")
    op.drop_table("topics")

    op.drop_index("ix_religions_updated_at", table_name="religions")
    op.drop_index("ix_religions_sync_status", table_name="religions")
    op.drop_index("ix_religions_name", table_name="religions")
    op.drop_table("religions")
