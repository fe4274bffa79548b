"""Static role -> resource -> allowed-actions permission matrix.

Lookups are default-deny: a role, resource or action missing from the table
is simply not allowed. The table is built once at import time from frozen
containers and is safe to read from any number of concurrent requests.
"""

from enum import StrEnum
from types import MappingProxyType
from typing import Mapping

from domain.entities.role import Role


class Resource(StrEnum):
    """Resource kinds guarded by the permission matrix."""

    WORKSPACES = "workspaces"
    USERS = "users"
    PROJECTS = "projects"
    TASKS = "tasks"
    FILES = "files"
    INVOICES = "invoices"
    EXPENSES = "expenses"
    CAMPAIGNS = "campaigns"
    CONTENT = "content"
    APPROVALS = "approvals"
    CHAT = "chat"
    INTEGRATIONS = "integrations"
    ANALYTICS = "analytics"
    AUDIT_LOGS = "audit_logs"


RoleGrants = Mapping[Resource, frozenset[str]]

_CRUD = ("create", "read", "update", "delete")


def _grants(**resources: tuple[str, ...]) -> RoleGrants:
    return MappingProxyType(
        {Resource(name): frozenset(actions) for name, actions in resources.items()}
    )


PERMISSION_MATRIX: Mapping[Role, RoleGrants] = MappingProxyType(
    {
        # Only admins connect/disconnect integrations and manage roles.
        Role.ADMIN: _grants(
            workspaces=_CRUD,
            users=(*_CRUD, "invite", "manage_roles"),
            projects=_CRUD,
            tasks=_CRUD,
            files=_CRUD,
            invoices=(*_CRUD, "send"),
            expenses=(*_CRUD, "approve"),
            campaigns=_CRUD,
            content=(*_CRUD, "publish"),
            approvals=("create", "read", "update", "approve", "reject"),
            chat=_CRUD,
            integrations=("connect", "disconnect", "read", "update", "manage_folders"),
            analytics=("read",),
            audit_logs=("read",),
        ),
        Role.DEVELOPER: _grants(
            workspaces=("read",),
            users=("read",),
            projects=("create", "read", "update"),
            tasks=_CRUD,
            files=("create", "read", "update"),
            invoices=("read",),
            expenses=("create", "read"),
            campaigns=("read",),
            content=("read",),
            approvals=("create", "read"),
            chat=("create", "read", "update"),
            integrations=("read",),
            analytics=("read",),
        ),
        Role.DESIGNER: _grants(
            workspaces=("read",),
            users=("read",),
            projects=("create", "read", "update"),
            tasks=("create", "read", "update"),
            files=_CRUD,
            invoices=("read",),
            expenses=("create", "read"),
            campaigns=("read",),
            content=("create", "read", "update"),
            approvals=("create", "read"),
            chat=("create", "read", "update"),
            integrations=("read",),
            analytics=("read",),
        ),
        Role.MARKETER: _grants(
            workspaces=("read",),
            users=("read",),
            projects=("read", "update"),
            tasks=("create", "read", "update"),
            files=("create", "read", "update"),
            invoices=("read",),
            expenses=("create", "read"),
            campaigns=_CRUD,
            content=(*_CRUD, "publish"),
            approvals=("create", "read"),
            chat=("create", "read", "update"),
            integrations=("read",),
            analytics=("read",),
        ),
        Role.CLIENT: _grants(
            workspaces=("read",),
            users=("read",),
            projects=("read",),
            tasks=("read",),
            files=("read",),
            invoices=("read",),
            campaigns=("read",),
            content=("read",),
            approvals=("read", "approve", "reject"),
            chat=("create", "read"),
        ),
    }
)


def is_allowed(role: Role | str, resource: Resource | str, action: str) -> bool:
    """Check whether ``role`` may perform ``action`` on ``resource``.

    Unknown roles, resources and actions all return False.
    """
    try:
        grants = PERMISSION_MATRIX[Role(role)]
        allowed = grants[Resource(resource)]
    except (KeyError, ValueError):
        return False
    return action in allowed


def get_role_permissions(role: Role) -> dict[str, list[str]]:
    """Return the role's grants as plain sorted lists, e.g. for API output."""
    grants = PERMISSION_MATRIX.get(role, MappingProxyType({}))
    return {resource.value: sorted(actions) for resource, actions in grants.items()}


def can_manage_users(role: Role) -> bool:
    return is_allowed(role, Resource.USERS, "manage_roles")


def can_approve_expenses(role: Role) -> bool:
    return is_allowed(role, Resource.EXPENSES, "approve")


def can_send_invoices(role: Role) -> bool:
    return is_allowed(role, Resource.INVOICES, "send")


def can_publish_content(role: Role) -> bool:
    return is_allowed(role, Resource.CONTENT, "publish")
