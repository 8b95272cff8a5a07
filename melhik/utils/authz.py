# melhik/utils/authz.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from melhik.db.session import get_db
from melhik.errors import Forbidden, InvalidToken, Unauthorized
from melhik.models.user import User
from melhik.utils.security import read_token


class Role(str, enum.Enum):
    ADMIN = "admin"
    CONTENT_MANAGER = "content_manager"


class Permission(str, enum.Enum):
    VIEW_RELIGIONS = "view_religions"
    CREATE_RELIGIONS = "create_religions"
    EDIT_RELIGIONS = "edit_religions"
    DELETE_RELIGIONS = "delete_religions"

    VIEW_TOPICS = "view_topics"
    CREATE_TOPICS = "create_topics"
    EDIT_TOPICS = "edit_topics"
    DELETE_TOPICS = "delete_topics"

    VIEW_CONTENT = "view_content"
    EDIT_CONTENT = "edit_content"

    MANAGE_SYNC = "manage_sync"


_CONTENT = frozenset(
    {
        Permission.VIEW_RELIGIONS,
        Permission.CREATE_RELIGIONS,
        Permission.EDIT_RELIGIONS,
        Permission.DELETE_RELIGIONS,
        Permission.VIEW_TOPICS,
        Permission.CREATE_TOPICS,
        Permission.EDIT_TOPICS,
        Permission.DELETE_TOPICS,
        Permission.VIEW_CONTENT,
        Permission.EDIT_CONTENT,
    }
)

ROLE_PERMISSIONS: dict = {
    Role.ADMIN: frozenset(Permission),
    Role.CONTENT_MANAGER: _CONTENT,
}


def _role_set(role: str) -> FrozenSet[Permission]:
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def effective_permissions(role: str, overrides: Optional[Iterable[str]]) -> FrozenSet[str]:
    """
    An explicit override list (even an empty one) replaces the role's set.
    None falls back to the role.
    """
    if overrides is not None:
        return frozenset(str(p) for p in overrides)
    return frozenset(p.value for p in _role_set(role))


def check_permission(role: str, overrides: Optional[Iterable[str]], required: Permission) -> bool:
    return Permission(required).value in effective_permissions(role, overrides)


@dataclass(frozen=True)
class Identity:
    """Who is calling, resolved per request from the bearer token."""

    user_id: int
    username: str
    role: str
    overrides: Optional[tuple] = None

    def can(self, required: Permission) -> bool:
        return check_permission(self.role, self.overrides, required)

    def permissions(self) -> List[str]:
        return sorted(effective_permissions(self.role, self.overrides))


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def get_identity(request: Request, db: Session = Depends(get_db)) -> Identity:
    """
    - No bearer token: 401 Unauthorized
    - Bad/expired token, unknown or inactive user: 401 InvalidToken
    Role and overrides are read from the row, so changes apply without re-login.
    """
    token = bearer_token(request)
    if not token:
        raise Unauthorized("No token provided")

    claims = read_token(token)
    user = db.get(User, claims["uid"])
    if not user or not user.is_active:
        raise InvalidToken("User not found or inactive")

    overrides = user.permission_overrides()
    return Identity(
        user_id=user.id,
        username=user.username,
        role=user.role,
        overrides=tuple(overrides) if overrides is not None else None,
    )


def require_permission(required: Permission) -> Callable[..., Identity]:
    def _dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if not identity.can(required):
            raise Forbidden(f"Missing capability '{required.value}'")
        return identity

    return _dependency
