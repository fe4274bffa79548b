"""Current workspace, session and permission API routes."""

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentCaller
from api.dependencies.workspace import CurrentWorkspace
from api.v1.dependencies import get_workspace_resolver
from api.v1.schemas.context import (
    AvailableWorkspaceResponse,
    CurrentWorkspaceResponse,
    LoginResponse,
    PermissionCheckResponse,
    PermissionsResponse,
    SwitchWorkspaceRequest,
    SwitchWorkspaceResponse,
    WorkspaceContextResponse,
)
from core.rate_limit import limiter
from domain.entities.permissions import get_role_permissions
from domain.services.workspace_resolver import WorkspaceResolver

workspace_router = APIRouter(prefix="/workspace", tags=["workspace-context"])
session_router = APIRouter(prefix="/session", tags=["session"])
permissions_router = APIRouter(prefix="/permissions", tags=["permissions"])


@workspace_router.get(
    "/current",
    response_model=CurrentWorkspaceResponse,
    summary="Get current workspace",
    responses={
        200: {"description": "Resolved workspace and every workspace the user can switch to"},
        403: {"description": "No workspace access, or not a member of the requested one"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_current_workspace(
    request: Request,
    context: CurrentWorkspace,
    resolver: WorkspaceResolver = Depends(get_workspace_resolver),
) -> CurrentWorkspaceResponse:
    """Resolve the caller's current workspace."""
    workspaces = await resolver.list_workspaces(context.user_id)
    return CurrentWorkspaceResponse(
        data=WorkspaceContextResponse.from_context(context),
        workspaces=[AvailableWorkspaceResponse.from_entity(ws) for ws in workspaces],
    )


@workspace_router.post(
    "/switch",
    response_model=SwitchWorkspaceResponse,
    summary="Switch current workspace",
    responses={
        200: {"description": "Workspace switched"},
        403: {"description": "Not an active member of that workspace"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def switch_workspace(
    request: Request,
    body: SwitchWorkspaceRequest,
    caller: CurrentCaller,
    resolver: WorkspaceResolver = Depends(get_workspace_resolver),
) -> SwitchWorkspaceResponse:
    """Make another workspace the caller's current one."""
    context = await resolver.switch(caller, body.workspace_id)
    return SwitchWorkspaceResponse(data=WorkspaceContextResponse.from_context(context))


@session_router.post(
    "/login",
    response_model=LoginResponse,
    summary="Record login",
    responses={200: {"description": "Login recorded; data is null without any workspace"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def login(
    request: Request,
    caller: CurrentCaller,
    resolver: WorkspaceResolver = Depends(get_workspace_resolver),
) -> LoginResponse:
    """Audit a login and prime the current workspace."""
    context = await resolver.on_login(caller)
    return LoginResponse(data=WorkspaceContextResponse.from_context(context) if context else None)


@session_router.post(
    "/logout",
    response_model=LoginResponse,
    summary="Record logout",
    responses={200: {"description": "Logout recorded, workspace hint cleared"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def logout(
    request: Request,
    caller: CurrentCaller,
    resolver: WorkspaceResolver = Depends(get_workspace_resolver),
) -> LoginResponse:
    """Audit a logout and forget the current workspace."""
    await resolver.on_logout(caller)
    return LoginResponse()


@permissions_router.get(
    "/me",
    response_model=PermissionsResponse,
    summary="Get my permissions",
    responses={
        200: {"description": "Permission matrix row for the caller's role"},
        403: {"description": "No workspace access"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_my_permissions(request: Request, context: CurrentWorkspace) -> PermissionsResponse:
    """Everything the caller's role may do in the current workspace."""
    return PermissionsResponse(
        workspace_id=context.workspace_id,
        role=context.role.value,
        is_owner=context.is_owner,
        permissions=get_role_permissions(context.role),
    )


@permissions_router.get(
    "/check",
    response_model=PermissionCheckResponse,
    summary="Check one permission",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def check_permission(
    request: Request,
    context: CurrentWorkspace,
    resource: str = Query(..., min_length=1),
    action: str = Query(..., min_length=1),
) -> PermissionCheckResponse:
    """Whether the caller's role grants ``resource.action``. Unknown names are denied."""
    return PermissionCheckResponse(
        resource=resource, action=action, allowed=context.can(resource, action)
    )
