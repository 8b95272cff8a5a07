# melhik/models/topic.py
from __future__ import annotations

import datetime as dt
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import orm

from melhik.db.base import Base
from melhik.models.common import SyncStatus, _now_utc


class Topic(Base):
    __tablename__ = "topics"

    id: orm.Mapped[int] = orm.mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    # RESTRICT: a religion with topics cannot go away underneath them
    religion_id: orm.Mapped[int] = orm.mapped_column(
        sa.Integer, sa.ForeignKey("religions.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    title: orm.Mapped[str] = orm.mapped_column(sa.String(200), nullable=False)
    title_en: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(200), nullable=True)
    description: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)
    image_url: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(1024), nullable=True)
    image_alt: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(240), nullable=True)

    sync_status: orm.Mapped[str] = orm.mapped_column(
        sa.String(16), nullable=False, default=SyncStatus.DRAFT.value, index=True
    )

    created_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc
    )
    updated_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc, onupdate=_now_utc, index=True
    )

    religion: orm.Mapped["Religion"] = orm.relationship(  # noqa: F821
        "Religion", back_populates="topics"
    )
    details: orm.Mapped[Optional["TopicDetail"]] = orm.relationship(  # noqa: F821
        "TopicDetail", back_populates="topic", uselist=False
    )

    @property
    def is_synced(self) -> bool:
        return self.sync_status == SyncStatus.SYNCED.value

    def __repr__(self) -> str:
        return f"<Topic id={self.id} religion_id={self.religion_id} status={self.sync_status}>"
