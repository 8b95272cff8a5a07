# melhik/models/user.py
from __future__ import annotations

import datetime as dt
import json
import logging
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import orm

from melhik.db.base import Base
from melhik.models.common import _now_utc

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id: orm.Mapped[int] = orm.mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    username: orm.Mapped[str] = orm.mapped_column(sa.String(80), nullable=False, unique=True, index=True)
    email: orm.Mapped[Optional[str]] = orm.mapped_column(sa.String(255), nullable=True, unique=True)
    password_hash: orm.Mapped[str] = orm.mapped_column(sa.String(255), nullable=False)

    role: orm.Mapped[str] = orm.mapped_column(sa.String(32), nullable=False, default="content_manager")
    # JSON list of capability names; NULL means "use the role's set"
    permissions: orm.Mapped[Optional[str]] = orm.mapped_column(sa.Text, nullable=True)
    status: orm.Mapped[str] = orm.mapped_column(sa.String(16), nullable=False, default="active")

    created_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc
    )
    updated_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now_utc, onupdate=_now_utc
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def permission_overrides(self) -> Optional[List[str]]:
        """Decoded override list, or None when the role's set applies."""
        if self.permissions is None:
            return None
        try:
            value = json.loads(self.permissions)
        except ValueError:
            logger.error("User %s has unreadable permissions %r; denying all", self.id, self.permissions)
            return []
        if not isinstance(value, list):
            logger.error("User %s permissions is not a list; denying all", self.id)
            return []
        return [str(p) for p in value]

    def set_permission_overrides(self, values: Optional[List[str]]) -> None:
        self.permissions = None if values is None else json.dumps(list(values))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"
