"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentCaller
from api.v1.dependencies import get_invitation_service
from api.v1.schemas.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationCreatedResponse,
    InvitationDetailResponse,
    InvitationListResponse,
    InvitationResponse,
)
from core.exceptions import AppException, ErrorCode
from core.rate_limit import limiter
from domain.entities.invitation import InvitationStatus
from domain.services.invitation_service import InvitationService

# Workspace-scoped invitation routes
workspace_invitations_router = APIRouter(
    prefix="/workspaces/{workspace_id}/invitations",
    tags=["invitations"],
)

# Invitee-scoped invitation routes (lookup, accept, pending, revoke)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


@workspace_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace invitation",
    responses={
        201: {"description": "Invitation created and emailed"},
        400: {"description": "Invalid email or role"},
        403: {"description": "Caller may not invite users"},
        404: {"description": "Workspace not found"},
        409: {"description": "Duplicate invitation or already a member"},
        429: {"description": "Too many invitations"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    workspace_id: UUID,
    body: CreateInvitationRequest,
    caller: CurrentCaller,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationCreatedResponse:
    """Invite an email address to a workspace. Requires ``users.invite``."""
    invitation, raw_token = await service.create_invitation(
        workspace_id=workspace_id,
        caller=caller,
        email=body.email,
        role=body.role,
    )
    return InvitationCreatedResponse(
        data=InvitationResponse.from_entity(invitation),
        token=raw_token,
        invitation_link=service.build_invitation_link(raw_token),
    )


@workspace_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List workspace invitations",
    responses={
        200: {"description": "Unaccepted invitations of the workspace"},
        403: {"description": "Caller may not invite users"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_workspace_invitations(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    include_expired: bool = Query(False, description="Also list expired invitations"),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List a workspace's pending invitations. Requires ``users.invite``."""
    invitations = await service.get_workspace_invitations(
        workspace_id, caller.id, include_expired=include_expired
    )
    data = [InvitationResponse.from_entity(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@workspace_invitations_router.post(
    "/{invitation_id}/resend",
    response_model=InvitationCreatedResponse,
    summary="Resend invitation",
    responses={
        200: {"description": "New token minted and emailed"},
        403: {"description": "Caller may not invite users"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already accepted"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def resend_invitation(
    request: Request,
    workspace_id: UUID,
    invitation_id: UUID,
    caller: CurrentCaller,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationCreatedResponse:
    """Rotate the token and expiry of an unaccepted invitation and email it again."""
    invitation, raw_token = await service.resend_invitation(
        workspace_id=workspace_id,
        invitation_id=invitation_id,
        caller=caller,
    )
    return InvitationCreatedResponse(
        data=InvitationResponse.from_entity(invitation),
        token=raw_token,
        invitation_link=service.build_invitation_link(raw_token),
    )


# --- Invitee-scoped routes ---


@invitations_router.get(
    "/lookup",
    response_model=InvitationDetailResponse,
    summary="Look up invitation by token",
    responses={
        200: {"description": "Invitation details for the signup page"},
        400: {"description": "Unknown token"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def lookup_invitation(
    request: Request,
    token: str = Query(..., min_length=1),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Preview an invitation before signing up. No authentication required."""
    details = await service.get_invitation_by_token(token)
    return InvitationDetailResponse(data=InvitationResponse.from_details(details))


@invitations_router.post(
    "/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, user added to workspace"},
        400: {"description": "Invalid token or email mismatch"},
        404: {"description": "Invitation not found"},
        409: {"description": "Already accepted or already a member"},
        410: {"description": "Invitation expired"},
        429: {"description": "Too many attempts"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    caller: CurrentCaller,
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """Accept an invitation by token (signup link) or by ID (in-app banner)."""
    if body.token:
        member = await service.accept_invitation(body.token, caller)
    elif body.invitation_id:
        member = await service.accept_by_id(body.invitation_id, caller)
    else:
        raise AppException(
            error_code=ErrorCode.VALIDATION_ERROR,
            message="Either token or invitation_id is required",
            status_code=400,
        )

    return AcceptInvitationResponse(
        workspace_id=member.workspace_id,
        role=member.role.value,
    )


@invitations_router.get(
    "/pending",
    response_model=InvitationListResponse,
    summary="Get pending invitations",
    responses={
        200: {"description": "List of pending invitations for the current user"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_pending_invitations(
    request: Request,
    caller: CurrentCaller,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """Get all pending invitations for the current user's email."""
    invitations = await service.get_user_pending_invitations(caller.email)
    data = [InvitationResponse.from_details(details) for details in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@invitations_router.delete(
    "/{invitation_id}",
    response_model=InvitationDetailResponse,
    summary="Revoke or decline invitation",
    responses={
        200: {"description": "Invitation revoked"},
        403: {"description": "Caller may not revoke this invitation"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already accepted"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_invitation(
    request: Request,
    invitation_id: UUID,
    caller: CurrentCaller,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Revoke an invitation (inviting members) or decline it (the invitee)."""
    invitation = await service.revoke_invitation(invitation_id, caller)
    return InvitationDetailResponse(
        data=InvitationResponse.from_entity(invitation, status=InvitationStatus.REVOKED.value)
    )
