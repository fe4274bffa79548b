"""Workspace context and authorization dependencies for FastAPI.

Usage:
    @router.get("/audit-logs")
    async def list_logs(
        context: WorkspaceContext = Depends(require_permission(Resource.AUDIT_LOGS, "read")),
    ):
        ...
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import structlog
from fastapi import Depends, Header

from api.dependencies.auth import CurrentCaller
from api.v1.dependencies import get_workspace_resolver
from core.exceptions import InsufficientPermissionsError
from domain.entities.permissions import Resource
from domain.entities.workspace import WorkspaceContext
from domain.services.workspace_resolver import WorkspaceResolver

logger = structlog.get_logger()


async def get_workspace_id_from_header(
    x_workspace_id: Annotated[str | None, Header()] = None,
) -> UUID | None:
    """Extract workspace ID from X-Workspace-Id header if present."""
    if x_workspace_id:
        try:
            return UUID(x_workspace_id)
        except ValueError:
            return None
    return None


WorkspaceId = Annotated[UUID | None, Depends(get_workspace_id_from_header)]


async def get_workspace_context(
    caller: CurrentCaller,
    workspace_id: WorkspaceId,
    resolver: WorkspaceResolver = Depends(get_workspace_resolver),
) -> WorkspaceContext:
    """Resolve the workspace the request operates in.

    An ``X-Workspace-Id`` header pins the workspace and fails if the caller
    is not an active member there. Without it the stored hint is tried and
    the caller's oldest membership is the fallback.
    """
    if workspace_id is not None:
        return await resolver.require(caller.id, workspace_id)
    return await resolver.resolve(caller.id)


CurrentWorkspace = Annotated[WorkspaceContext, Depends(get_workspace_context)]


def require_permission(
    resource: Resource, action: str
) -> Callable[..., Awaitable[WorkspaceContext]]:
    """Dependency that requires ``resource.action`` in the current workspace.

    Returns the resolved context so routes can use it directly.
    """

    async def check_permission(context: CurrentWorkspace) -> WorkspaceContext:
        if not context.can(resource, action):
            logger.warning(
                "permission_denied",
                user_id=str(context.user_id),
                workspace_id=str(context.workspace_id),
                role=context.role.value,
                permission=f"{resource.value}.{action}",
            )
            raise InsufficientPermissionsError(f"{resource.value}.{action}")
        return context

    return check_permission

