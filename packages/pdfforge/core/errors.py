"""Error types raised by the pdfforge engine.

Every error carries an :class:`ErrorKind` so the job orchestrator can report
failures as structured results instead of propagating exceptions.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of failures surfaced to callers."""

    FORMAT = "FormatError"
    VALIDATION = "ValidationError"
    ENCRYPTION = "EncryptionError"
    AUTH = "AuthError"
    TIMEOUT = "TimeoutError"
    RESOURCE_LIMIT = "ResourceLimitError"
    INTERNAL = "InternalError"


class PdfForgeError(Exception):
    """Base exception for all pdfforge errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown pdfforge error occurred."


class FormatError(PdfForgeError):
    """Raised when input bytes are malformed, truncated or unsupported."""

    kind = ErrorKind.FORMAT

    @property
    def default_message(self) -> str:
        return "Malformed or unsupported PDF document."


class IntegrityError(FormatError):
    """Raised when a document model violates its structural invariants."""

    @property
    def default_message(self) -> str:
        return "Document structure is inconsistent."


class ValidationError(PdfForgeError):
    """Raised for bad tool parameters or out-of-range page indices."""

    kind = ErrorKind.VALIDATION

    @property
    def default_message(self) -> str:
        return "Invalid request parameters."


class EncryptionError(PdfForgeError):
    """Raised when an encrypted input cannot be opened."""

    kind = ErrorKind.ENCRYPTION

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    UNSUPPORTED = "unsupported"

    def __init__(self, message: str = "", *, reason: str = MISSING_CREDENTIAL) -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def default_message(self) -> str:
        return "PDF is encrypted and cannot be processed without a password."


class AuthError(PdfForgeError):
    """Raised when Unlock is given the wrong password."""

    kind = ErrorKind.AUTH

    @property
    def default_message(self) -> str:
        return "Incorrect password for encrypted PDF."


class JobTimeoutError(PdfForgeError):
    """Raised when a job exceeds its deadline."""

    kind = ErrorKind.TIMEOUT

    @property
    def default_message(self) -> str:
        return "Job exceeded its deadline."


class ResourceLimitError(PdfForgeError):
    """Raised when an input exceeds the configured size or page ceilings."""

    kind = ErrorKind.RESOURCE_LIMIT

    @property
    def default_message(self) -> str:
        return "Input exceeds the configured resource limits."


__all__ = [
    "ErrorKind",
    "PdfForgeError",
    "FormatError",
    "IntegrityError",
    "ValidationError",
    "EncryptionError",
    "AuthError",
    "JobTimeoutError",
    "ResourceLimitError",
]
