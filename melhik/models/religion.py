# melhik/models/religion.py
from __future__ import annotations

import datetime as dt
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import orm

from melhik.db.base import Base
from melhik.models.common import SyncStatus, _now_utc


class Religion(Base):
    __tablename__ = "religions"

    id: orm.Mapped[int] = orm.mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: orm.Mapped[str] = orm.mapped_column(sa.String(120), nullable=False, unique=True, index=True)
    name_en: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(120), nullable=True)
    description: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)
    color: orm.Mapped[str] = orm.mapped_column(sa.String(7), nullable=False, default="#8B4513")
    icon: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(240), nullable=True)

    sync_status: orm.Mapped[str] = orm.mapped_column(
        sa.String(16), nullable=False, default=SyncStatus.DRAFT.value, index=True
    )

    created_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc
    )
    updated_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc, onupdate=_now_utc, index=True
    )

    topics: orm.Mapped[List["Topic"]] = orm.relationship(  # noqa: F821
        "Topic", back_populates="religion", order_by="Topic.id"
    )

    @property
    def is_synced(self) -> bool:
        return self.sync_status == SyncStatus.SYNCED.value

    def __repr__(self) -> str:
        return f"<Religion id={self.id} name={self.name!r} status={self.sync_status}>"
