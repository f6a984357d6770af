import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from docguard.core.rbac.roles import Role
from docguard.db.base import Base, utcnow


class Department(Base):
    __tablename__ = "departments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="departments")
    memberships = relationship("DepartmentMembership", back_populates="department", cascade="all, delete-orphan")


class DepartmentMembership(Base):
    """User-department-role junction. At most one role per user and department."""
    __tablename__ = "department_memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "department_id", name="uq_membership_user_department"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(Uuid, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=Role.VIEWER.value)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="memberships")
    department = relationship("Department", back_populates="memberships")
