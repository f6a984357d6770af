"""Mapping of operation failures onto HTTP responses."""

from typing import TypeVar

from fastapi import HTTPException, status

from docguard.core.errors import ErrorKind, OperationResult


T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.INPUT_INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_error(result: OperationResult[T]) -> T:
    """Return the result value or raise the matching ``HTTPException``.

    The response body carries only the stable message for the error kind.
    """
    if result.ok:
        return result.value

    error = result.error
    headers = None
    if error.kind == ErrorKind.UNAUTHENTICATED:
        headers = {"WWW-Authenticate": "Bearer"}
    elif error.kind == ErrorKind.RATE_LIMITED:
        headers = {"Retry-After": str(max(1, error.retry_after or 1))}

    raise HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail=error.message,
        headers=headers,
    )
