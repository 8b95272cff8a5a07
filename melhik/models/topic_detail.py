# melhik/models/topic_detail.py
from __future__ import annotations

import datetime as dt
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import orm

from melhik.db.base import Base
from melhik.models.common import SyncStatus, _now_utc


class TopicDetail(Base):
    """
    The body of a topic: explanation, verses, key points and references.

    List fields are kept as JSON-encoded text and decoded on the way out.
    `version` is a per-row edit counter: 1 on creation, +1 on every update.
    """

    __tablename__ = "topic_details"

    id: orm.Mapped[int] = orm.mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    topic_id: orm.Mapped[int] = orm.mapped_column(
        sa.Integer,
        sa.ForeignKey("topics.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        index=True,
    )

    explanation: orm.Mapped[str] = orm.mapped_column(sa.Text, nullable=False)
    bible_verses: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)
    key_points: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)
    references: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)

    version: orm.Mapped[int] = orm.mapped_column(sa.Integer, nullable=False, default=1)

    sync_status: orm.Mapped[str] = orm.mapped_column(
        sa.String(16), nullable=False, default=SyncStatus.DRAFT.value, index=True
    )

    created_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc
    )
    updated_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc, onupdate=_now_utc, index=True
    )

    topic: orm.Mapped["Topic"] = orm.relationship(  # noqa: F821
        "Topic", back_populates="details"
    )

    __table_args__ = (
        sa.CheckConstraint("version >= 1", name="ck_topic_details_version_positive"),
    )

    @property
    def is_synced(self) -> bool:
        return self.sync_status == SyncStatus.SYNCED.value

    def __repr__(self) -> str:
        return f"<TopicDetail id={self.id} topic_id={self.topic_id} v{self.version} status={self.sync_status}>"
