import uuid
from sqlalchemy import Column, String, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship

from docguard.db.base import Base, utcnow


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    # Policy flags, e.g. {"allow_members_edit_all": true}
    settings = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    departments = relationship("Department", back_populates="organization")
    users = relationship("User", back_populates="organization")
