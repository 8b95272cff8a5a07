# melhik/utils/security.py
from __future__ import annotations

import os
from typing import Optional

import bcrypt
from dotenv import load_dotenv
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from melhik.errors import InvalidToken

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))

_TOKEN_SALT = "melhik.auth-token"

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX = 72


def _pw_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_pw_bytes(password), bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_pw_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        # malformed hash in the row
        return False


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY, salt=_TOKEN_SALT)


def issue_token(user_id: int, username: str, role: str) -> str:
    """Signed, timestamped token carrying {uid, username, role}."""
    return _serializer().dumps({"uid": user_id, "username": username, "role": role})


def read_token(token: str, *, max_age: Optional[int] = None) -> dict:
    """
    Verify signature and age; return the claims.
    Raises InvalidToken on tampering, expiry or a malformed payload.
    """
    if max_age is None:
        max_age = TOKEN_TTL_HOURS * 3600
    try:
        claims = _serializer().loads(token, max_age=max_age)
    except SignatureExpired as e:
        raise InvalidToken("Token has expired") from e
    except BadSignature as e:
        raise InvalidToken("Token signature is invalid") from e

    if not isinstance(claims, dict) or not isinstance(claims.get("uid"), int):
        raise InvalidToken("Token payload is malformed")
    return claims
