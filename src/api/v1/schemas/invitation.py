"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.invitation import Invitation, InvitationDetails


class CreateInvitationRequest(BaseModel):
    """Schema for creating a workspace invitation.

    Email format and role are validated by the service so they surface as
    INVALID_EMAIL / INVALID_ROLE rather than a generic validation error.
    """

    email: str = Field(..., min_length=3, max_length=255)
    role: str = Field("CLIENT", min_length=1, max_length=32)


class AcceptInvitationRequest(BaseModel):
    """Schema for accepting a workspace invitation."""

    token: Optional[str] = Field(None, min_length=1)
    invitation_id: Optional[UUID] = None


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "workspace_id": "456e4567-e89b-12d3-a456-426614174000",
                "workspace_name": "Acme Agency",
                "email": "user@example.com",
                "role": "DESIGNER",
                "status": "pending",
                "invited_by": "789e4567-e89b-12d3-a456-426614174000",
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-08T10:00:00",
            }
        },
    )

    id: UUID
    workspace_id: UUID
    workspace_name: str = ""
    inviter_name: Optional[str] = None
    inviter_email: Optional[str] = None
    email: str
    role: str
    status: str
    invited_by: Optional[UUID] = None
    created_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None

    @classmethod
    def from_entity(
        cls, invitation: Invitation, status: Optional[str] = None
    ) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            workspace_id=invitation.workspace_id,
            email=invitation.email,
            role=invitation.role.value,
            status=status or invitation.status.value,
            invited_by=invitation.invited_by,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
        )

    @classmethod
    def from_details(cls, details: InvitationDetails) -> "InvitationResponse":
        response = cls.from_entity(details.invitation)
        response.workspace_name = details.workspace_name
        response.inviter_name = details.inviter_name
        response.inviter_email = details.inviter_email
        return response


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InvitationDetailResponse(BaseModel):
    """Schema for single Invitation response."""

    data: InvitationResponse


class InvitationCreatedResponse(BaseModel):
    """Schema for invitation creation response (includes raw token)."""

    data: InvitationResponse
    token: str = Field(
        ...,
        description="Raw invitation token. Share this with the invitee. "
        "This value is only shown once.",
    )
    invitation_link: str


class AcceptInvitationResponse(BaseModel):
    """Schema for accepting an invitation response."""

    workspace_id: UUID
    role: str
    message: str = "Invitation accepted successfully"
