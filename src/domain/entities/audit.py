"""Audit log domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from domain.entities.role import Role


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    DOWNLOAD = "DOWNLOAD"
    SHARE = "SHARE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ROLE_CHANGE = "ROLE_CHANGE"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"
    PAYMENT = "PAYMENT"


class AuditEntityType(StrEnum):
    USER = "USER"
    WORKSPACE = "WORKSPACE"
    PROJECT = "PROJECT"
    TASK = "TASK"
    INVOICE = "INVOICE"
    FILE = "FILE"
    ROLE = "ROLE"
    INTEGRATION = "INTEGRATION"
    SETTING = "SETTING"
    CONTENT = "CONTENT"
    CAMPAIGN = "CAMPAIGN"
    APPROVAL = "APPROVAL"
    EXPENSE = "EXPENSE"


@dataclass(frozen=True)
class AuditActor:
    """Snapshot of who performed an action, taken at the time of the action."""

    user_id: UUID | None = None
    email: str | None = None
    role: Role | None = None


@dataclass(frozen=True)
class RequestContext:
    """Client metadata captured from the inbound request."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class AuditLogEntry:
    """Append-only record of a privileged action.

    workspace_id is None for workspace-independent actions such as login.
    """

    action: AuditAction
    entity_type: AuditEntityType
    description: str
    id: UUID = field(default_factory=uuid4)
    workspace_id: UUID | None = None
    actor_id: UUID | None = None
    actor_email: str | None = None
    actor_role: Role | None = None
    entity_id: str | None = None
    metadata: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
