"""Activity log model for DocGuard.

Append-only: rows are inserted by the audit ledger and never updated or
deleted. ``document_id`` is intentionally not a foreign key so that the
entry written for a hard delete outlives the document it describes.
"""

import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Uuid

from docguard.db.base import Base, utcnow


class ActivityAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ARCHIVED = "archived"
    UNARCHIVED = "unarchived"
    DELETED = "deleted"
    SECTION_UPDATED = "section_updated"
    COMMENT_ADDED = "comment_added"
    COMMENT_DELETED = "comment_deleted"
    UNAUTHORIZED_ATTEMPT = "unauthorized_attempt"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=True, index=True)
    # Null for failures that happen before a document exists
    document_id = Column(Uuid, nullable=True, index=True)
    actor_id = Column(Uuid, nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    # Bounded metadata only: ids, enums, lengths
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<ActivityLog {self.action} on {self.document_id} by {self.actor_id}>"
