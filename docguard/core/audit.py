"""Audit ledger for DocGuard.

Appends ``ActivityLog`` rows. The ledger never updates or deletes an
existing entry. It does not commit: entries recorded for a mutation become
durable together with that mutation when the caller commits, and disappear
with it on rollback.

``details`` carries metadata only (ids, enum values, lengths, counts). Keys
that look like credentials are redacted, and details whose serialized form
exceeds the configured ceiling are rejected outright.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from docguard.common.logger import get_logger
from docguard.core.config import get_settings
from docguard.core.errors import AuditLedgerError, ErrorKind, OperationResult
from docguard.db.models import ActivityAction, ActivityLog


logger = get_logger(__name__)

# Sensitive fields to redact from details
SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "secret",
    "client_secret",
    "authorization",
    "cookie",
}


def redact_sensitive(data: Any) -> Any:
    """Redact sensitive fields from data."""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in SENSITIVE_FIELDS else redact_sensitive(v)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive(item) for item in data]
    return data


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, datetime)):
        return str(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise AuditLedgerError(f"Unsupported audit detail type: {type(value).__name__}")


class AuditLedger:
    """Append-only writer for document activity."""

    def __init__(self, db: Session, max_details_bytes: Optional[int] = None):
        self.db = db
        self.max_details_bytes = max_details_bytes or get_settings().audit_details_limit

    def prepare_details(self, details: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Normalize, redact and size-check details.

        Raises:
            AuditLedgerError: If details are not a mapping, contain
                unsupported values, or exceed the size ceiling
        """
        if details is None:
            return None
        if not isinstance(details, dict):
            raise AuditLedgerError("Audit details must be a mapping")

        cleaned = redact_sensitive(_normalize(details))
        size = len(json.dumps(cleaned, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))
        if size > self.max_details_bytes:
            raise AuditLedgerError(
                f"Audit details of {size} bytes exceed the {self.max_details_bytes} byte ceiling"
            )
        return cleaned

    def record(
        self,
        actor_id: UUID,
        document_id: Optional[UUID],
        action: ActivityAction,
        details: Optional[Dict[str, Any]] = None,
        *,
        organization_id: Optional[UUID] = None,
    ) -> OperationResult[ActivityLog]:
        """Append one entry to the current transaction.

        Returns a failed result, and adds nothing, when the entry is rejected.
        """
        try:
            entry = ActivityLog(
                organization_id=organization_id,
                document_id=document_id,
                actor_id=actor_id,
                action=ActivityAction(action).value,
                details=self.prepare_details(details),
            )
            self.db.add(entry)
            self.db.flush()
        except (AuditLedgerError, ValueError) as e:
            logger.error("Audit entry rejected for action %s: %s", action, e)
            return OperationResult.failure(ErrorKind.INTERNAL)
        return OperationResult.success(entry)

    def record_unauthorized_attempt(
        self,
        actor_id: UUID,
        document_id: Optional[UUID],
        *,
        organization_id: Optional[UUID] = None,
        operation: str,
        outcome: ErrorKind,
    ) -> bool:
        """Record a denied attempt in its own short transaction.

        Best effort: a failure is logged and reported as ``False`` but never
        raised, so it cannot replace the denial the caller is about to return.
        """
        try:
            result = self.record(
                actor_id,
                document_id,
                ActivityAction.UNAUTHORIZED_ATTEMPT,
                {"operation": operation, "outcome": outcome.value},
                organization_id=organization_id,
            )
            if not result.ok:
                self.db.rollback()
                return False
            self.db.commit()
            return True
        except Exception:
            logger.exception("Failed to record unauthorized attempt for %s", operation)
            self.db.rollback()
            return False

    def list_for_document(self, document_id: UUID, limit: int = 100) -> List[ActivityLog]:
        return (
            self.db.query(ActivityLog)
            .filter(ActivityLog.document_id == document_id)
            .order_by(ActivityLog.created_at.asc())
            .limit(limit)
            .all()
        )
