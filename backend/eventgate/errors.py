"""Domain error taxonomy.

Every error carries an ``ErrorCode`` whose value is the client-safe message
and an HTTP status the exception handlers in ``eventgate.main`` respond with.
Messages never include hashes, tokens or the signing secret.
"""
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "validation failed"
    INVALID_CREDENTIALS = "invalid password"
    INVALID_TOKEN = "invalid"
    EXPIRED_TOKEN = "expired"
    SERVICE_UNAVAILABLE = "service unavailable"
    STORAGE_UNAVAILABLE = "storage unavailable"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE
    status_code: int = 500

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.code.value
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code.name}: {self.message}"

    def to_response(self) -> dict[str, Any]:
        return {"error": self.code.value}


class ValidationError(DomainError):
    """Malformed or out-of-range input, rejected before storage or credentials."""

    code = ErrorCode.VALIDATION_FAILED
    status_code = 400

    def __init__(self, details: list[dict[str, str]]) -> None:
        super().__init__()
        self.details = details

    def to_response(self) -> dict[str, Any]:
        return {"success": False, "error": self.code.value, "details": self.details}


class AuthError(DomainError):
    """Client must (re-)authenticate."""

    status_code = 401


class InvalidCredentialsError(AuthError):
    code = ErrorCode.INVALID_CREDENTIALS


class InvalidTokenError(AuthError):
    """Malformed token, bad signature, or a subject no longer in the catalog."""

    code = ErrorCode.INVALID_TOKEN


class ExpiredTokenError(AuthError):
    code = ErrorCode.EXPIRED_TOKEN


class ConfigError(DomainError):
    """Server misconfiguration, e.g. a missing signing secret."""

    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 500


class StorageError(DomainError):
    """Transient storage failure; the request is safe to retry."""

    code = ErrorCode.STORAGE_UNAVAILABLE
    status_code = 503
