"""Actor value object.

An ``Actor`` is the fully resolved identity a request runs as: the user id,
the one organization the user belongs to, and the role held in each
department. It is immutable and passed explicitly into every permission
check and service call.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional
from uuid import UUID

from docguard.core.rbac.roles import Role, parse_role


@dataclass(frozen=True)
class Actor:
    id: UUID
    organization_id: UUID
    department_roles: Mapping[UUID, Role] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mapping so the actor cannot be altered mid-request
        object.__setattr__(
            self, "department_roles", MappingProxyType(dict(self.department_roles))
        )

    def role_for(self, department_id: Optional[UUID]) -> Optional[Role]:
        if department_id is None:
            return None
        return self.department_roles.get(department_id)

    @property
    def department_ids(self) -> frozenset:
        return frozenset(self.department_roles)

    def departments_with(self, minimum: Role) -> frozenset:
        """Departments where the actor holds at least ``minimum``."""
        return frozenset(
            dept_id for dept_id, role in self.department_roles.items() if role.at_least(minimum)
        )

    @classmethod
    def from_user(cls, user, memberships: Optional[Iterable] = None) -> "Actor":
        """Build an actor from a ``User`` row and its department memberships.

        Memberships with an unknown role value are ignored.
        """
        if memberships is None:
            memberships = user.memberships
        roles = {}
        for membership in memberships:
            role = parse_role(membership.role)
            if role is not None:
                roles[membership.department_id] = role
        return cls(id=user.id, organization_id=user.organization_id, department_roles=roles)
