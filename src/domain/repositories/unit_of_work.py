"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.audit_repository import IAuditLogRepository
from domain.repositories.invitation_repository import IInvitationRepository
from domain.repositories.user_repository import IUserRepository
from domain.repositories.workspace_repository import IWorkspaceRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    users: IUserRepository
    workspaces: IWorkspaceRepository
    invitations: IInvitationRepository
    audit_logs: IAuditLogRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
