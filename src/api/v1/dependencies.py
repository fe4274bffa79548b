"""Dependency injection factories for API v1.

Stateless collaborators are process-wide singletons. Anything that touches
the workspace hint is built per request, because the cookie hint store is
bound to the request and response objects.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request, Response
from limits.storage import storage_from_string

from core.config import settings
from domain.repositories.workspace_hint_store import IWorkspaceHintStore
from domain.services.audit_service import AuditService
from domain.services.invitation_service import InvitationService
from domain.services.mailer import IInvitationMailer
from domain.services.membership_service import MembershipService
from domain.services.rate_limiter import InvitationRateLimiter
from domain.services.side_effects import BackgroundDispatcher
from domain.services.workspace_resolver import WorkspaceResolver
from domain.services.workspace_service import WorkspaceService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.mail.logging_mailer import LoggingInvitationMailer
from infrastructure.mail.smtp_mailer import SmtpInvitationMailer
from infrastructure.workspace_hint.cookie_store import CookieWorkspaceHintStore
from infrastructure.workspace_hint.memory_store import InMemoryWorkspaceHintStore


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_dispatcher() -> BackgroundDispatcher:
    """Side-effect dispatcher. Its worker is started in the app lifespan."""
    return BackgroundDispatcher()


@lru_cache
def get_audit_service() -> AuditService:
    """Get Audit service instance."""
    return AuditService(get_uow_factory(), dispatcher=get_dispatcher())


@lru_cache
def get_membership_service() -> MembershipService:
    """Get Membership service instance."""
    return MembershipService(get_uow_factory(), audit_service=get_audit_service())


@lru_cache
def get_mailer() -> IInvitationMailer:
    """Invitation mailer selected by ``settings.mail_backend``."""
    if settings.mail_backend == "smtp":
        return SmtpInvitationMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return LoggingInvitationMailer()


@lru_cache
def get_invitation_rate_limiter() -> InvitationRateLimiter:
    """Get the invitation create/accept rate limiter."""
    return InvitationRateLimiter(
        storage_from_string(settings.invitation_rate_storage_uri),
        create_limit=settings.invitation_create_limit,
        accept_limit=settings.invitation_accept_limit,
        window_seconds=settings.invitation_rate_window_seconds,
    )


@lru_cache
def get_memory_hint_store() -> InMemoryWorkspaceHintStore:
    """Process-wide hint store used when the cookie backend is off."""
    return InMemoryWorkspaceHintStore(max_entries=settings.workspace_hint_cache_size)


def get_hint_store(request: Request, response: Response) -> IWorkspaceHintStore:
    """Workspace hint store for the current request."""
    if settings.workspace_hint_backend == "memory":
        return get_memory_hint_store()
    return CookieWorkspaceHintStore(
        request,
        response,
        secret_key=settings.jwt_secret_key,
        cookie_name=settings.workspace_cookie_name,
        max_age=settings.workspace_cookie_max_age,
        secure=settings.is_production,
    )


def get_workspace_resolver(
    hint_store: IWorkspaceHintStore = Depends(get_hint_store),
) -> WorkspaceResolver:
    """Get a Workspace resolver bound to the request's hint store."""
    return WorkspaceResolver(get_uow_factory(), hint_store, audit_service=get_audit_service())


def get_workspace_service(
    hint_store: IWorkspaceHintStore = Depends(get_hint_store),
) -> WorkspaceService:
    """Get Workspace service instance."""
    return WorkspaceService(
        get_uow_factory(),
        audit_service=get_audit_service(),
        hint_store=hint_store,
    )


def get_invitation_service(
    hint_store: IWorkspaceHintStore = Depends(get_hint_store),
) -> InvitationService:
    """Get Invitation service instance."""
    return InvitationService(
        get_uow_factory(),
        hint_store=hint_store,
        audit_service=get_audit_service(),
        mailer=get_mailer(),
        dispatcher=get_dispatcher(),
        rate_limiter=get_invitation_rate_limiter(),
        app_base_url=settings.app_base_url,
        expiry_days=settings.invitation_expiry_days,
    )
