"""Workspace roles and the rank-based role hierarchy.

The hierarchy answers one coarse question: "is this role privileged enough?".
It is intentionally separate from the permission matrix in
``domain.entities.permissions``. DESIGNER and MARKETER share a rank here but
are granted different actions there, so callers must pick the strategy that
matches their check and must not assume the two agree.
"""

from enum import StrEnum
from types import MappingProxyType
from typing import Mapping


class Role(StrEnum):
    """Role a user holds inside one workspace."""

    ADMIN = "ADMIN"
    DEVELOPER = "DEVELOPER"
    DESIGNER = "DESIGNER"
    MARKETER = "MARKETER"
    CLIENT = "CLIENT"


ROLE_RANK: Mapping[Role, int] = MappingProxyType(
    {
        Role.ADMIN: 5,
        Role.DEVELOPER: 4,
        Role.DESIGNER: 3,
        Role.MARKETER: 3,
        Role.CLIENT: 1,
    }
)

ROLE_DESCRIPTIONS: Mapping[Role, str] = MappingProxyType(
    {
        Role.ADMIN: "Full system access - manage everything",
        Role.DEVELOPER: "Code & technical tasks - manage development workflows",
        Role.DESIGNER: "Assets & creative work - manage design deliverables",
        Role.MARKETER: "Campaigns & analytics - manage marketing operations",
        Role.CLIENT: "Portal-only access - view/approve deliverables",
    }
)

TEAM_ROLES: frozenset[Role] = frozenset(
    {Role.ADMIN, Role.DEVELOPER, Role.DESIGNER, Role.MARKETER}
)


def parse_role(value: str | Role) -> Role | None:
    """Parse a role name case-insensitively. Returns None for unknown values."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value.strip().upper())
    except ValueError:
        return None


def is_at_least(user_role: Role, required_role: Role) -> bool:
    """Check if ``user_role`` ranks at or above ``required_role``."""
    return ROLE_RANK[user_role] >= ROLE_RANK[required_role]


def manageable_roles(user_role: Role) -> list[Role]:
    """Roles strictly below ``user_role`` in the hierarchy."""
    level = ROLE_RANK[user_role]
    return [role for role, rank in ROLE_RANK.items() if rank < level]


def is_team_member(role: Role) -> bool:
    return role in TEAM_ROLES


def is_client(role: Role) -> bool:
    return role == Role.CLIENT
