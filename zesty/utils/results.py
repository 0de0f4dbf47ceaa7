"""
Result values for upstream calls.

External-call wrappers (taste graph, Gemini) return a Result instead of
swallowing errors, so each caller chooses its own fallback based on the
FailureKind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why an upstream call produced no usable value."""

    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"
    NOT_FOUND = "not_found"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Either a value or a failure kind.

    Attributes:
        value: Payload when the call succeeded
        failure: FailureKind when it did not
        detail: Short log-safe explanation of the failure
    """
    value: Optional[T] = None
    failure: Optional[FailureKind] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: FailureKind, detail: Optional[str] = None) -> "Result[T]":
        return cls(failure=kind, detail=detail)
