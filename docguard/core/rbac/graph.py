"""Tenant/resource graph.

Resolves how an actor relates to a document (same organization, role in the
document's department, authorship) and loads the rows the permission checks
need. Everything here is read-only.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from docguard.core.rbac.roles import DEFAULT_POLICY, OrganizationPolicy, Role

if TYPE_CHECKING:
    from docguard.core.actor import Actor


@dataclass(frozen=True)
class ResourceRelation:
    """How an actor relates to one document."""

    organization_match: bool
    has_department: bool
    role: Optional[Role]
    is_author: bool

    @property
    def reachable(self) -> bool:
        """True when a role could apply at all."""
        return self.organization_match and self.has_department and self.role is not None


def resolve_relation(actor: "Actor", document) -> ResourceRelation:
    """Resolve the actor/document relation.

    The organization comparison is made first and, on mismatch, no role is
    resolved even if the actor holds one for that department id.
    """
    organization_match = actor.organization_id == document.organization_id
    has_department = document.department_id is not None
    role = None
    if organization_match and has_department:
        role = actor.role_for(document.department_id)
    return ResourceRelation(
        organization_match=organization_match,
        has_department=has_department,
        role=role,
        is_author=document.author_id == actor.id,
    )


class ResourceGraph:
    """Read-only loaders over the organization/department/document tree."""

    def __init__(self, db: Session):
        self.db = db

    def get_document(self, document_id: UUID):
        from docguard.db.models import Document

        return self.db.query(Document).filter(Document.id == document_id).first()

    def get_department(self, department_id: UUID):
        from docguard.db.models import Department

        return self.db.query(Department).filter(Department.id == department_id).first()

    def get_section(self, document_id: UUID, section_id: UUID):
        from docguard.db.models import Section

        return self.db.query(Section).filter(
            Section.id == section_id,
            Section.document_id == document_id,
        ).first()

    def get_comment(self, comment_id: UUID):
        from docguard.db.models import Comment

        return self.db.query(Comment).filter(Comment.id == comment_id).first()

    def organization_policy(self, organization_id: UUID) -> OrganizationPolicy:
        from docguard.db.models import Organization

        org = self.db.query(Organization).filter(Organization.id == organization_id).first()
        if org is None:
            return DEFAULT_POLICY
        return OrganizationPolicy.from_settings(org.settings)

    def count_children(self, document_id: UUID) -> dict[str, int]:
        from docguard.db.models import Comment, Section

        sections = self.db.query(func.count(Section.id)).filter(
            Section.document_id == document_id
        ).scalar()
        comments = self.db.query(func.count(Comment.id)).filter(
            Comment.document_id == document_id
        ).scalar()
        return {"sections": sections or 0, "comments": comments or 0}
