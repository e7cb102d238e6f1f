# FILE: historial/core/errors.py
from __future__ import annotations

from typing import Any, Optional


class HistorialError(RuntimeError):
    """Base for every error the services raise on purpose."""

    status_code: int = 500
    code: str = "internal"

    def __init__(self, msg: str, *, details: Optional[Any] = None):
        super().__init__(msg)
        self.msg = msg
        self.details = details


class NotFound(HistorialError):
    status_code = 404
    code = "not_found"


class InvalidArgument(HistorialError):
    status_code = 400
    code = "invalid_argument"


class Conflict(HistorialError):
    status_code = 409
    code = "conflict"


class RecordNumberExhausted(Conflict):
    code = "record_number_exhausted"


class Unauthorized(HistorialError):
    status_code = 401
    code = "unauthorized"


class Forbidden(HistorialError):
    status_code = 403
    code = "forbidden"
