import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from docguard.db.base import Base, utcnow


class Section(Base):
    __tablename__ = "sections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    key = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    content = Column(JSON, nullable=False, default=dict)
    is_complete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    document = relationship("Document", back_populates="sections")
