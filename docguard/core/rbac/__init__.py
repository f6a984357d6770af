"""RBAC (Role-Based Access Control) module for DocGuard.

This module defines the role model, tenant/resource resolution and the
document permission predicates.
"""

from .roles import Role, DocumentAction, Grant, OrganizationPolicy, ROLE_RULES, DEFAULT_POLICY
from .graph import ResourceGraph, ResourceRelation, resolve_relation
from .permissions import (
    can_view,
    can_edit,
    can_delete,
    can_archive,
    can_comment,
    can_create,
    can_view_archived,
    can_delete_comment,
    document_permissions,
)

__all__ = [
    "Role",
    "DocumentAction",
    "Grant",
    "OrganizationPolicy",
    "ROLE_RULES",
    "DEFAULT_POLICY",
    "ResourceGraph",
    "ResourceRelation",
    "resolve_relation",
    "can_view",
    "can_edit",
    "can_delete",
    "can_archive",
    "can_comment",
    "can_create",
    "can_view_archived",
    "can_delete_comment",
    "document_permissions",
]
