import uuid
from sqlalchemy import Column, DateTime, Text, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from docguard.db.base import Base, utcnow


# Replaces the body of a deleted comment so the thread keeps its shape
DELETED_COMMENT_MARKER = "[deleted]"


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    document = relationship("Document", back_populates="comments")
