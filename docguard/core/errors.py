"""Error taxonomy and result type for DocGuard operations.

Every operation of the document service returns an ``OperationResult``.
Failures carry one of six ``ErrorKind`` values and a stable message from
``SAFE_MESSAGES``; internal detail stays in the server log.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Stable, transport-independent failure classes."""

    INPUT_INVALID = "input_invalid"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


SAFE_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INPUT_INVALID: "The request was invalid",
    ErrorKind.UNAUTHENTICATED: "Authentication required",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    ErrorKind.INTERNAL: "An internal error occurred",
}

# Categories that may be surfaced to callers for internal failures
SAFE_CATEGORIES = frozenset({
    "timeout",
    "invalid_credential",
    "rate_limited",
    "unavailable",
    "internal",
})


class ProtocolError(Exception):
    """Raised inside the mutation protocol to reject a request.

    Converted to an ``OperationResult`` failure before leaving the service.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        category: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(kind.value)
        self.kind = kind
        self.category = category
        self.retry_after = retry_after


class AuditLedgerError(Exception):
    """Raised when an audit entry cannot be accepted."""


class TransactionTimeout(Exception):
    """Raised when a transaction exceeds its deadline."""


def safe_error_category(exc: BaseException) -> str:
    """Map an exception onto an allow-listed category.

    The exception text itself is never returned.
    """
    if isinstance(exc, ProtocolError):
        if exc.kind == ErrorKind.RATE_LIMITED:
            return "rate_limited"
        if exc.kind == ErrorKind.UNAUTHENTICATED:
            return "invalid_credential"
        return exc.category or "internal"
    if isinstance(exc, (TransactionTimeout, TimeoutError, PoolTimeoutError)):
        return "timeout"
    if isinstance(exc, OperationalError):
        text = str(getattr(exc, "orig", exc)).lower()
        if "timeout" in text or "canceling statement" in text:
            return "timeout"
        return "unavailable"
    if isinstance(exc, (ConnectionError, DBAPIError)):
        return "unavailable"
    if isinstance(exc, PermissionError):
        return "invalid_credential"
    return "internal"


@dataclass(frozen=True)
class OperationError:
    kind: ErrorKind
    message: str
    category: Optional[str] = None
    retry_after: Optional[int] = None

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        *,
        category: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationError":
        if category is not None and category not in SAFE_CATEGORIES:
            category = "internal"
        return cls(kind, SAFE_MESSAGES[kind], category, retry_after)


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of an operation: a value or a classified error, never both."""

    value: Optional[T] = None
    error: Optional[OperationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        *,
        category: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult[T]":
        return cls(error=OperationError.of(kind, category=category, retry_after=retry_after))

    def unwrap(self) -> T:
        """Return the value or raise ``ProtocolError`` for a failure."""
        if self.error is not None:
            raise ProtocolError(
                self.error.kind,
                category=self.error.category,
                retry_after=self.error.retry_after,
            )
        return self.value
