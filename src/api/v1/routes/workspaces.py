"""Workspace API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentCaller
from api.v1.dependencies import get_workspace_service
from api.v1.schemas.workspace import (
    WorkspaceCreate,
    WorkspaceDetailResponse,
    WorkspaceListResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from core.rate_limit import limiter
from domain.services.workspace_service import WorkspaceService

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get(
    "",
    response_model=WorkspaceListResponse,
    summary="List user's workspaces",
    responses={200: {"description": "Active workspaces the user is an active member of"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_workspaces(
    request: Request,
    caller: CurrentCaller,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceListResponse:
    """Get all workspaces the authenticated user is a member of."""
    workspaces = await service.get_all_for_user(caller.id)
    data = [WorkspaceResponse.from_entity(ws) for ws in workspaces]
    return WorkspaceListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=WorkspaceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a workspace",
    responses={
        201: {"description": "Workspace created successfully"},
        409: {"description": "Workspace slug already taken"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_workspace(
    request: Request,
    body: WorkspaceCreate,
    caller: CurrentCaller,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceDetailResponse:
    """Create a new workspace. The creator becomes its owner with the ADMIN role."""
    workspace = await service.create(
        caller=caller,
        name=body.name,
        description=body.description,
    )
    return WorkspaceDetailResponse(data=WorkspaceResponse.from_entity(workspace))


@router.get(
    "/{workspace_id}",
    response_model=WorkspaceDetailResponse,
    summary="Get workspace details",
    responses={
        200: {"description": "Workspace details"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_workspace(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceDetailResponse:
    """Get a specific workspace by ID. Requires active membership."""
    workspace = await service.get_by_id(workspace_id, caller.id)
    return WorkspaceDetailResponse(data=WorkspaceResponse.from_entity(workspace))


@router.patch(
    "/{workspace_id}",
    response_model=WorkspaceDetailResponse,
    summary="Update workspace",
    responses={
        200: {"description": "Workspace updated"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_workspace(
    request: Request,
    workspace_id: UUID,
    body: WorkspaceUpdate,
    caller: CurrentCaller,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceDetailResponse:
    """Update a workspace. Requires the ADMIN role."""
    workspace = await service.update(
        workspace_id=workspace_id,
        caller=caller,
        name=body.name,
        description=body.description,
    )
    return WorkspaceDetailResponse(data=WorkspaceResponse.from_entity(workspace))


@router.delete(
    "/{workspace_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete workspace",
    responses={
        204: {"description": "Workspace deleted"},
        403: {"description": "Only the owner can delete a workspace"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_workspace(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    service: WorkspaceService = Depends(get_workspace_service),
) -> None:
    """Delete a workspace with its memberships and invitations. Owner only."""
    await service.delete(workspace_id, caller)
    return None
