"""Role model for DocGuard.

Defines the three department-scoped roles and what each may do with a
document:

1. Viewer  - view only
2. Member  - view, create, comment; edit/delete/archive own documents
3. Manager - everything, on any document in departments they manage

Member rights over documents authored by others can be widened per
organization through ``OrganizationPolicy`` flags.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Role(str, Enum):
    """Department-scoped roles, ordered by capability."""

    VIEWER = "viewer"
    MEMBER = "member"
    MANAGER = "manager"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank


_ROLE_RANK = {
    Role.VIEWER: 0,
    Role.MEMBER: 1,
    Role.MANAGER: 2,
}


class DocumentAction(str, Enum):
    """Actions that can be performed on a document."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    ARCHIVE = "archive"
    COMMENT = "comment"


class Grant(str, Enum):
    """How a role holds an action."""

    ANY = "any"                  # On any document in the department
    AUTHOR_ONLY = "author_only"  # Only on documents the actor authored
    NONE = "none"


# Role -> action -> grant, for documents in a department the role is held in
ROLE_RULES: Dict[Role, Dict[DocumentAction, Grant]] = {
    Role.VIEWER: {
        DocumentAction.VIEW: Grant.ANY,
        DocumentAction.CREATE: Grant.NONE,
        DocumentAction.EDIT: Grant.NONE,
        DocumentAction.DELETE: Grant.NONE,
        DocumentAction.ARCHIVE: Grant.NONE,
        DocumentAction.COMMENT: Grant.NONE,
    },
    Role.MEMBER: {
        DocumentAction.VIEW: Grant.ANY,
        DocumentAction.CREATE: Grant.ANY,
        DocumentAction.EDIT: Grant.AUTHOR_ONLY,
        DocumentAction.DELETE: Grant.AUTHOR_ONLY,
        DocumentAction.ARCHIVE: Grant.AUTHOR_ONLY,
        DocumentAction.COMMENT: Grant.ANY,
    },
    Role.MANAGER: {
        DocumentAction.VIEW: Grant.ANY,
        DocumentAction.CREATE: Grant.ANY,
        DocumentAction.EDIT: Grant.ANY,
        DocumentAction.DELETE: Grant.ANY,
        DocumentAction.ARCHIVE: Grant.ANY,
        DocumentAction.COMMENT: Grant.ANY,
    },
}


@dataclass(frozen=True)
class OrganizationPolicy:
    """Organization-wide switches read from ``Organization.settings``."""

    allow_members_edit_all: bool = False
    allow_members_delete_all: bool = False
    allow_members_archive_all: bool = False
    managers_view_archived: bool = True

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, Any]]) -> "OrganizationPolicy":
        settings = settings or {}
        # Only literal booleans count; anything else keeps the default
        values = {
            name: settings[name]
            for name in cls.__dataclass_fields__
            if isinstance(settings.get(name), bool)
        }
        return cls(**values)

    def members_may_act_on_all(self, action: DocumentAction) -> bool:
        return {
            DocumentAction.EDIT: self.allow_members_edit_all,
            DocumentAction.DELETE: self.allow_members_delete_all,
            DocumentAction.ARCHIVE: self.allow_members_archive_all,
        }.get(action, False)


DEFAULT_POLICY = OrganizationPolicy()


def parse_role(value: Any) -> Optional[Role]:
    """Parse a stored role value; unknown values resolve to no role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def get_grant(role: Role, action: DocumentAction) -> Grant:
    """Look up the grant a role holds for an action."""
    return ROLE_RULES.get(role, {}).get(action, Grant.NONE)
