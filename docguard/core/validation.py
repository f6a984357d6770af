"""Structural input validation.

Runs before any storage access. Every failure raises
``ProtocolError(ErrorKind.INPUT_INVALID)``; nothing is partially accepted.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from docguard.core.errors import ErrorKind, ProtocolError
from docguard.db.models import DocumentStatus


PATCHABLE_FIELDS = frozenset({"title", "description", "status"})
FILTER_FIELDS = frozenset({"department_id", "status", "search", "include_archived"})


def _invalid() -> ProtocolError:
    return ProtocolError(ErrorKind.INPUT_INVALID)


def parse_id(value: Any) -> UUID:
    """Parse an identifier; empty or malformed values are invalid."""
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        raise _invalid()
    try:
        return UUID(value.strip())
    except ValueError:
        raise _invalid() from None


def validate_text(
    value: Any,
    max_length: int,
    *,
    required: bool = True,
) -> Optional[str]:
    """Strip and bound a text argument."""
    if value is None:
        if required:
            raise _invalid()
        return None
    if not isinstance(value, str):
        raise _invalid()
    value = value.strip()
    if required and not value:
        raise _invalid()
    if len(value) > max_length:
        raise _invalid()
    return value


def validate_status(value: Any) -> str:
    try:
        return DocumentStatus(value).value
    except ValueError:
        raise _invalid() from None


def json_depth(value: Any) -> int:
    """Nesting depth of a JSON-like value; scalars have depth 0."""
    if isinstance(value, dict):
        return 1 + max((json_depth(v) for v in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((json_depth(v) for v in value), default=0)
    return 0


def validate_content(value: Any, max_bytes: int, max_depth: int) -> Dict[str, Any]:
    """Validate a structured section payload.

    The payload must be a JSON object whose serialized size and nesting
    depth stay within the ceilings.
    """
    if not isinstance(value, dict):
        raise _invalid()
    try:
        encoded = json.dumps(value, separators=(",", ":"), allow_nan=False, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        raise _invalid() from None
    if len(encoded.encode("utf-8")) > max_bytes:
        raise _invalid()
    decoded = json.loads(encoded)
    if json_depth(decoded) > max_depth:
        raise _invalid()
    return decoded


def validate_patch(patch: Any, title_max: int, description_max: int) -> Dict[str, Any]:
    """Validate a document patch; unknown or empty patches are invalid."""
    if not isinstance(patch, Mapping) or not patch:
        raise _invalid()
    unknown = set(patch) - PATCHABLE_FIELDS
    if unknown:
        raise _invalid()

    cleaned: Dict[str, Any] = {}
    if "title" in patch:
        cleaned["title"] = validate_text(patch["title"], title_max)
    if "description" in patch:
        cleaned["description"] = validate_text(patch["description"], description_max, required=False)
    if "status" in patch:
        cleaned["status"] = validate_status(patch["status"])
    return cleaned


@dataclass(frozen=True)
class DocumentFilters:
    department_id: Optional[UUID] = None
    status: Optional[str] = None
    search: Optional[str] = None
    include_archived: bool = False


def validate_filters(filters: Any, search_max: int) -> DocumentFilters:
    if filters is None:
        return DocumentFilters()
    if isinstance(filters, DocumentFilters):
        filters = {
            "department_id": filters.department_id,
            "status": filters.status,
            "search": filters.search,
            "include_archived": filters.include_archived,
        }
    if not isinstance(filters, Mapping):
        raise _invalid()
    if set(filters) - FILTER_FIELDS:
        raise _invalid()

    department_id = filters.get("department_id")
    status = filters.get("status")
    include_archived = filters.get("include_archived", False)
    if not isinstance(include_archived, bool):
        raise _invalid()

    return DocumentFilters(
        department_id=parse_id(department_id) if department_id is not None else None,
        status=validate_status(status) if status is not None else None,
        search=validate_text(filters.get("search"), search_max, required=False) or None,
        include_archived=include_archived,
    )
