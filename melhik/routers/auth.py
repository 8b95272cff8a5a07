# melhik/routers/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from melhik.db.session import get_db
from melhik.errors import Unauthorized
from melhik.models.user import User
from melhik.schemas import LoginRequest
from melhik.utils.authz import Identity, get_identity
from melhik.utils.security import issue_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/auth/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == payload.username).first()

    # same answer for unknown user and wrong password
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %r", payload.username)
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("Account is inactive")

    token = issue_token(user.id, user.username, user.role)
    logger.info("User %s logged in", user.username)
    return {
        "success": True,
        "data": {
            "user": {"id": user.id, "username": user.username, "role": user.role},
            "token": token,
        },
    }


@router.get("/users/me/permissions")
def my_permissions(identity: Identity = Depends(get_identity)):
    return {
        "success": True,
        "data": {
            "role": identity.role,
            "custom": identity.overrides is not None,
            "permissions": identity.permissions(),
        },
    }
