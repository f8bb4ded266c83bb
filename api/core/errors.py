"""
Expected business failures, separate from real faults.

Services raise `ServiceError` subclasses; `main.py` turns the kind into an
HTTP status and a JSON body. Anything else that escapes a handler is a bug and
ends up in the catch-all 500 handler.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPLOAD = "upload"
    STORAGE = "storage"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.UPLOAD: 400,
    ErrorKind.STORAGE: 500,
}


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        if self._status_code is not None:
            return self._status_code
        return STATUS_BY_KIND[self.kind]

    def to_body(self) -> dict:
        body: dict = {"success": False, "message": self.message}
        if self.detail:
            body["error"] = self.detail
        return body


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION


class AuthError(ServiceError):
    kind = ErrorKind.AUTH


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class UploadError(ServiceError):
    kind = ErrorKind.UPLOAD


class StorageError(ServiceError):
    kind = ErrorKind.STORAGE
