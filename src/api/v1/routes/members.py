"""Workspace membership API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentCaller
from api.v1.dependencies import get_membership_service
from api.v1.schemas.workspace import (
    AddMemberRequest,
    UpdateMemberRoleRequest,
    WorkspaceMemberDetailResponse,
    WorkspaceMemberListResponse,
    WorkspaceMemberResponse,
)
from core.exceptions import InvalidRoleError
from core.rate_limit import limiter
from domain.entities.role import Role, parse_role
from domain.services.membership_service import MembershipService

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["members"])


def _parse_role(value: str) -> Role:
    role = parse_role(value)
    if role is None:
        raise InvalidRoleError(value)
    return role


@router.get(
    "/members",
    response_model=WorkspaceMemberListResponse,
    summary="List workspace members",
    responses={
        200: {"description": "List of workspace members"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    include_inactive: bool = Query(False, description="Include deactivated members"),
    service: MembershipService = Depends(get_membership_service),
) -> WorkspaceMemberListResponse:
    """Get the members of a workspace. Requires active membership."""
    members = await service.get_members(workspace_id, caller.id, include_inactive)
    data = [WorkspaceMemberResponse.from_member_with_profile(m) for m in members]
    return WorkspaceMemberListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/members",
    response_model=WorkspaceMemberDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add workspace member",
    responses={
        201: {"description": "Member added"},
        400: {"description": "Invalid role"},
        403: {"description": "Insufficient permissions (ADMIN only)"},
        404: {"description": "Workspace or user not found"},
        409: {"description": "User is already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def add_member(
    request: Request,
    workspace_id: UUID,
    body: AddMemberRequest,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> WorkspaceMemberDetailResponse:
    """Add an existing user to a workspace. Requires the ADMIN role."""
    member = await service.add_member(
        workspace_id=workspace_id,
        caller=caller,
        target_user_id=body.user_id,
        role=_parse_role(body.role),
    )
    return WorkspaceMemberDetailResponse(data=WorkspaceMemberResponse.from_entity(member))


@router.patch(
    "/members/{member_user_id}",
    response_model=WorkspaceMemberDetailResponse,
    summary="Update member role",
    responses={
        200: {"description": "Role updated"},
        400: {"description": "Invalid role"},
        403: {"description": "Insufficient permissions, owner or self target"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_member_role(
    request: Request,
    workspace_id: UUID,
    member_user_id: UUID,
    body: UpdateMemberRoleRequest,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> WorkspaceMemberDetailResponse:
    """Change another member's role. Requires the ADMIN role."""
    member = await service.update_member_role(
        workspace_id=workspace_id,
        caller=caller,
        target_user_id=member_user_id,
        role=_parse_role(body.role),
    )
    return WorkspaceMemberDetailResponse(data=WorkspaceMemberResponse.from_entity(member))


@router.post(
    "/members/{member_user_id}/deactivate",
    response_model=WorkspaceMemberDetailResponse,
    summary="Deactivate member",
    responses={
        200: {"description": "Member deactivated"},
        403: {"description": "Insufficient permissions, owner or self target"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def deactivate_member(
    request: Request,
    workspace_id: UUID,
    member_user_id: UUID,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> WorkspaceMemberDetailResponse:
    """Suspend a member's access without deleting the membership."""
    member = await service.deactivate_member(workspace_id, caller, member_user_id)
    return WorkspaceMemberDetailResponse(data=WorkspaceMemberResponse.from_entity(member))


@router.post(
    "/members/{member_user_id}/reactivate",
    response_model=WorkspaceMemberDetailResponse,
    summary="Reactivate member",
    responses={
        200: {"description": "Member reactivated"},
        403: {"description": "Insufficient permissions, owner or self target"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def reactivate_member(
    request: Request,
    workspace_id: UUID,
    member_user_id: UUID,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> WorkspaceMemberDetailResponse:
    """Restore a deactivated membership."""
    member = await service.reactivate_member(workspace_id, caller, member_user_id)
    return WorkspaceMemberDetailResponse(data=WorkspaceMemberResponse.from_entity(member))


@router.delete(
    "/members/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove workspace member",
    responses={
        204: {"description": "Member removed"},
        403: {"description": "Insufficient permissions, owner or self target"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    workspace_id: UUID,
    member_user_id: UUID,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Remove another member from a workspace. Requires the ADMIN role."""
    await service.remove_member(workspace_id, caller, member_user_id)
    return None


@router.post(
    "/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave workspace",
    responses={
        204: {"description": "Left the workspace"},
        403: {"description": "The owner cannot leave"},
        404: {"description": "Workspace not found or not a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def leave_workspace(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Remove the caller's own membership."""
    await service.leave_workspace(workspace_id, caller)
    return None
