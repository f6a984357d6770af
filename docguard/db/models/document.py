"""Document model: the protected resource, with its sections and comments."""

import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from docguard.db.base import Base, utcnow


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Document(Base):
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Tenant boundary, never reassigned after creation
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    # Nullable: a document without a department is unreachable for every role
    department_id = Column(Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value, index=True)
    archived_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    sections = relationship(
        "Section",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Section.position",
    )
    comments = relationship(
        "Comment",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self) -> str:
        return f"<Document {self.id} org={self.organization_id}>"
