"""Audit log API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentCaller
from api.dependencies.workspace import require_permission
from api.v1.dependencies import get_audit_service
from api.v1.schemas.audit import AuditLogListResponse, AuditLogResponse
from core.rate_limit import limiter
from domain.entities.audit import AuditAction, AuditEntityType
from domain.entities.permissions import Resource
from domain.entities.workspace import WorkspaceContext
from domain.services.audit_service import AuditService

router = APIRouter(tags=["audit-logs"])


@router.get(
    "/workspaces/{workspace_id}/audit-logs",
    response_model=AuditLogListResponse,
    summary="List workspace audit logs",
    responses={
        200: {"description": "Audit entries, newest first"},
        403: {"description": "Caller may not read audit logs"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_audit_logs(
    request: Request,
    workspace_id: UUID,
    caller: CurrentCaller,
    action: Optional[AuditAction] = Query(None),
    entity_type: Optional[AuditEntityType] = Query(None),
    actor_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: AuditService = Depends(get_audit_service),
) -> AuditLogListResponse:
    """Page through a workspace's audit trail. Requires ``audit_logs.read``."""
    entries, total = await service.get_workspace_logs(
        workspace_id,
        caller.id,
        action=action,
        entity_type=entity_type,
        actor_id=actor_id,
        limit=limit,
        offset=offset,
    )
    return AuditLogListResponse(
        data=[AuditLogResponse.from_entity(entry) for entry in entries],
        meta={"total": total, "limit": limit, "offset": offset},
    )


@router.get(
    "/workspaces/{workspace_id}/audit-logs/{entity_type}/{entity_id}",
    response_model=AuditLogListResponse,
    summary="Get entity audit history",
    responses={
        200: {"description": "Audit entries for one entity, newest first"},
        403: {"description": "Caller may not read audit logs"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_entity_history(
    request: Request,
    workspace_id: UUID,
    entity_type: AuditEntityType,
    entity_id: str,
    caller: CurrentCaller,
    limit: int = Query(50, ge=1, le=200),
    service: AuditService = Depends(get_audit_service),
) -> AuditLogListResponse:
    """History of a single entity within a workspace."""
    entries = await service.get_entity_history(
        workspace_id, caller.id, entity_type, entity_id, limit=limit
    )
    return AuditLogListResponse(
        data=[AuditLogResponse.from_entity(entry) for entry in entries],
        meta={"total": len(entries)},
    )


@router.get(
    "/workspace/audit-logs",
    response_model=AuditLogListResponse,
    summary="List current workspace audit logs",
    responses={
        200: {"description": "Audit entries of the resolved workspace, newest first"},
        403: {"description": "Caller may not read audit logs"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_current_audit_logs(
    request: Request,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    context: WorkspaceContext = Depends(require_permission(Resource.AUDIT_LOGS, "read")),
    service: AuditService = Depends(get_audit_service),
) -> AuditLogListResponse:
    """Audit trail of the workspace the request resolves to."""
    entries, total = await service.get_workspace_logs(
        context.workspace_id, context.user_id, limit=limit, offset=offset
    )
    return AuditLogListResponse(
        data=[AuditLogResponse.from_entity(entry) for entry in entries],
        meta={"total": total, "limit": limit, "offset": offset},
    )
