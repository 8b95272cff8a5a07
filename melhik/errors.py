# melhik/errors.py
"""
Error taxonomy for the CMS and the sync feed.

Each class carries the HTTP status it maps to; `melhik.main` registers one
handler that renders any of them as `{error, message, timestamp}`.
"""
from __future__ import annotations

from typing import Any, Optional


class MelhikError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Any = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details


class Unauthorized(MelhikError):
    status_code = 401
    error = "Unauthorized"


class InvalidToken(Unauthorized):
    error = "Invalid token"


class Forbidden(MelhikError):
    status_code = 403
    error = "Insufficient permissions"


class ValidationError(MelhikError):
    status_code = 400
    error = "Invalid input"


class DependentRecordsError(ValidationError):
    error = "Record has dependents"


class NotFound(MelhikError):
    status_code = 404
    error = "Not found"


class ConflictError(MelhikError):
    status_code = 409
    error = "Conflict"


class InternalError(MelhikError):
    status_code = 500
    error = "Internal server error"
