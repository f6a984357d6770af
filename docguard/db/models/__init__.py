"""Database models for DocGuard."""

from docguard.db.models.org import Organization
from docguard.db.models.department import Department, DepartmentMembership
from docguard.db.models.user import User
from docguard.db.models.document import Document, DocumentStatus
from docguard.db.models.section import Section
from docguard.db.models.comment import Comment, DELETED_COMMENT_MARKER
from docguard.db.models.activity import ActivityLog, ActivityAction

__all__ = [
    "Organization",
    "Department",
    "DepartmentMembership",
    "User",
    "Document",
    "DocumentStatus",
    "Section",
    "Comment",
    "DELETED_COMMENT_MARKER",
    "ActivityLog",
    "ActivityAction",
]
