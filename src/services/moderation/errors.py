"""
Warden - Moderation Errors
==========================

Error taxonomy for the moderation engine.

- ValidationError is a returned value: bad input is rejected before any
  write, and callers branch on ``kind``.
- StoreError is raised by the case record store and propagates.
- GatewayError is raised by ``call_gateway`` when a Discord call fails or
  times out; best-effort steps catch it and record a GatewayResult.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum


class ValidationErrorKind(Enum):
    EMPTY_REPORT = "empty_report"
    USER_NOT_RESOLVED = "user_not_resolved"


@dataclass(frozen=True)
class ValidationError:
    """Rejected input. Returned, never raised."""
    kind: ValidationErrorKind
    message: str

    @classmethod
    def empty_report(cls) -> "ValidationError":
        return cls(ValidationErrorKind.EMPTY_REPORT, "Need either a description or attachment(s).")

    @classmethod
    def user_not_resolved(cls, handle: str) -> "ValidationError":
        return cls(ValidationErrorKind.USER_NOT_RESOLVED, f"Could not resolve {handle} to a user.")


class StoreError(Exception):
    """Raised when a case record store read or write fails."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class GatewayError(Exception):
    """Raised when an external call fails or exceeds its timeout."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        reason = "timed out" if isinstance(cause, (TimeoutError, asyncio.TimeoutError)) else str(cause) or type(cause).__name__
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.cause = cause


__all__ = [
    "ValidationErrorKind",
    "ValidationError",
    "StoreError",
    "GatewayError",
]
