"""
Error codes and types for unl-kernel.

Two kinds of failure exist:

- Structural failures (undecodable input, unknown version, bad parameters)
  raise an ``UnlError`` subclass and abort the surrounding command.
- Cryptographic failures are data: a ``SignatureStatus`` per check plus
  ``VerificationError`` records attached to verification results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Stable error codes shared by exceptions and verification records.
    """
    DECODE_ERROR = "DECODE_ERROR"
    MALFORMED_MANIFEST = "MALFORMED_MANIFEST"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    INVALID_KEY = "INVALID_KEY"
    PARAMETER_ERROR = "PARAMETER_ERROR"
    SECRET_NOT_FOUND = "SECRET_NOT_FOUND"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    BLOB_UNDECODABLE = "BLOB_UNDECODABLE"
    MANIFEST_UNDECODABLE = "MANIFEST_UNDECODABLE"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    PUBLIC_KEY_MISMATCH = "PUBLIC_KEY_MISMATCH"


class SignatureStatus(str, Enum):
    """Outcome of a single signature check."""
    NOT_CHECKED = "NOT_CHECKED"
    VALID = "VALID"
    INVALID = "INVALID"

    @classmethod
    def from_bool(cls, ok: bool) -> "SignatureStatus":
        return cls.VALID if ok else cls.INVALID


class UnlError(Exception):
    """Base class for every fatal unl-kernel error."""
    code: ErrorCode = ErrorCode.DECODE_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class DecodeError(UnlError):
    """Malformed checksum, alphabet, length, base64 or JSON structure."""
    code = ErrorCode.DECODE_ERROR


class MalformedManifest(DecodeError):
    """A manifest's binary record could not be parsed."""
    code = ErrorCode.MALFORMED_MANIFEST


class UnsupportedVersion(UnlError):
    code = ErrorCode.UNSUPPORTED_VERSION


class UnsupportedAlgorithm(UnlError):
    code = ErrorCode.UNSUPPORTED_ALGORITHM


class InvalidKey(UnlError):
    code = ErrorCode.INVALID_KEY


class ParameterError(UnlError):
    """Missing or invalid inputs to sign/compare, raised before any I/O."""
    code = ErrorCode.PARAMETER_ERROR


class SecretNotFound(UnlError):
    code = ErrorCode.SECRET_NOT_FOUND


class SourceUnavailable(UnlError):
    """A document or secret store could not be reached or read."""
    code = ErrorCode.SOURCE_UNAVAILABLE


@dataclass
class VerificationError:
    """
    A single non-fatal verification problem with typed code and details.
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, code: ErrorCode, exc: Exception, **details: Any) -> "VerificationError":
        return cls(code=code, message=str(exc), details=details)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }
