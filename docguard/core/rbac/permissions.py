"""Permission engine for DocGuard.

Pure predicates answering whether an actor may act on a document. All checks
on an existing document follow the same order:

1. document has no department  -> deny
2. organizations differ        -> deny (before any role lookup)
3. no role in the department   -> deny
4. apply the role rule for the action, honouring organization policy
"""

from typing import TYPE_CHECKING, Dict

from docguard.core.rbac.graph import resolve_relation
from docguard.core.rbac.roles import (
    DEFAULT_POLICY,
    DocumentAction,
    Grant,
    OrganizationPolicy,
    Role,
    get_grant,
)

if TYPE_CHECKING:
    from docguard.core.actor import Actor


def _allowed(
    actor: "Actor",
    document,
    action: DocumentAction,
    policy: OrganizationPolicy,
) -> bool:
    relation = resolve_relation(actor, document)
    if not relation.has_department:
        return False
    if not relation.organization_match:
        return False
    if relation.role is None:
        return False

    grant = get_grant(relation.role, action)
    if grant == Grant.ANY:
        return True
    if grant == Grant.AUTHOR_ONLY:
        if relation.is_author:
            return True
        return relation.role == Role.MEMBER and policy.members_may_act_on_all(action)
    return False


def can_view(actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY) -> bool:
    return _allowed(actor, document, DocumentAction.VIEW, policy)


def can_edit(actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY) -> bool:
    return _allowed(actor, document, DocumentAction.EDIT, policy)


def can_delete(actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY) -> bool:
    return _allowed(actor, document, DocumentAction.DELETE, policy)


def can_archive(actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY) -> bool:
    return _allowed(actor, document, DocumentAction.ARCHIVE, policy)


def can_comment(actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY) -> bool:
    return _allowed(actor, document, DocumentAction.COMMENT, policy)


def can_create(actor: "Actor", department) -> bool:
    """Check if the actor may create a document in ``department``.

    Requires the department to belong to the actor's organization and a
    non-viewer role in it.
    """
    if department is None:
        return False
    if actor.organization_id != department.organization_id:
        return False
    role = actor.role_for(department.id)
    if role is None:
        return False
    return get_grant(role, DocumentAction.CREATE) == Grant.ANY


def can_view_archived(
    actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY
) -> bool:
    """Managers may opt into seeing archived documents when policy allows."""
    if not policy.managers_view_archived:
        return False
    if not can_view(actor, document, policy):
        return False
    return actor.role_for(document.department_id) == Role.MANAGER


def can_delete_comment(
    actor: "Actor", document, comment, policy: OrganizationPolicy = DEFAULT_POLICY
) -> bool:
    """Comment authors and department managers may delete a comment."""
    if not can_view(actor, document, policy):
        return False
    if comment.author_id == actor.id:
        return True
    return actor.role_for(document.department_id) == Role.MANAGER


def document_permissions(
    actor: "Actor", document, policy: OrganizationPolicy = DEFAULT_POLICY
) -> Dict[str, bool]:
    """Affordances for presentation layers, computed server-side."""
    return {
        "can_edit": can_edit(actor, document, policy),
        "can_delete": can_delete(actor, document, policy),
        "can_archive": can_archive(actor, document, policy),
        "can_comment": can_comment(actor, document, policy),
    }
