"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invitation import Invitation, InvitationDetails
from domain.entities.role import Role
from infrastructure.database.models import InvitationModel, ProfileModel, WorkspaceModel


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        model = self._to_model(invitation)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        model = await self._session.get(InvitationModel, id)
        return self._to_entity(model) if model else None

    async def get_by_id_for_update(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key and lock the row."""
        stmt = select(InvitationModel).where(InvitationModel.id == id).with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get an invitation by its hashed token."""
        stmt = select(InvitationModel).where(InvitationModel.token_hash == token_hash)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_details_by_token_hash(self, token_hash: str) -> InvitationDetails | None:
        """Get an invitation with workspace and inviter names."""
        stmt = self._details_query().where(InvitationModel.token_hash == token_hash)
        result = await self._session.execute(stmt)
        row = result.one_or_none()
        return self._to_details(*row) if row else None

    async def get_for_workspace(
        self, workspace_id: UUID, include_expired: bool = False
    ) -> list[Invitation]:
        """Get unaccepted invitations for a workspace, newest first."""
        stmt = select(InvitationModel).where(
            InvitationModel.workspace_id == workspace_id,
            InvitationModel.accepted_at.is_(None),
        )
        if not include_expired:
            stmt = stmt.where(InvitationModel.expires_at > datetime.utcnow())
        stmt = stmt.order_by(InvitationModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_email(self, email: str) -> list[InvitationDetails]:
        """Get all pending (non-expired) invitations for an email address."""
        stmt = (
            self._details_query()
            .where(
                InvitationModel.email == email.strip().lower(),
                InvitationModel.accepted_at.is_(None),
                InvitationModel.expires_at > datetime.utcnow(),
                WorkspaceModel.is_active.is_(True),
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_details(*row) for row in result.all()]

    async def get_pending_for_workspace_email(
        self, workspace_id: UUID, email: str
    ) -> Invitation | None:
        """Get a pending invitation for a specific workspace and email."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.workspace_id == workspace_id,
                InvitationModel.email == email.strip().lower(),
                InvitationModel.accepted_at.is_(None),
                InvitationModel.expires_at > datetime.utcnow(),
            )
            .order_by(InvitationModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def mark_accepted(self, id: UUID, user_id: UUID, accepted_at: datetime) -> bool:
        """Compare-and-swap accepted_at from NULL to ``accepted_at``."""
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.id == id,
                InvitationModel.accepted_at.is_(None),
            )
            .values(accepted_at=accepted_at, accepted_by=user_id)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def rotate_token(
        self, id: UUID, token_hash: str, expires_at: datetime
    ) -> Invitation:
        """Replace the token hash and expiry of an unaccepted invitation."""
        model = await self._session.get(InvitationModel, id)

        if not model:
            raise ValueError(f"Invitation {id} not found")

        model.token_hash = token_hash
        model.expires_at = expires_at
        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete an invitation."""
        model = await self._session.get(InvitationModel, id)

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    def _details_query(self) -> Select:
        return (
            select(InvitationModel, WorkspaceModel.name, ProfileModel)
            .join(WorkspaceModel, WorkspaceModel.id == InvitationModel.workspace_id)
            .outerjoin(ProfileModel, ProfileModel.id == InvitationModel.invited_by)
        )

    def _to_details(
        self,
        model: InvitationModel,
        workspace_name: str,
        inviter: ProfileModel | None,
    ) -> InvitationDetails:
        return InvitationDetails(
            invitation=self._to_entity(model),
            workspace_name=workspace_name,
            inviter_name=inviter.display_name if inviter else None,
            inviter_email=inviter.email if inviter else None,
        )

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            workspace_id=model.workspace_id,
            email=model.email,
            role=Role(model.role),
            token_hash=model.token_hash,
            invited_by=model.invited_by,
            created_at=model.created_at,
            expires_at=model.expires_at,
            accepted_at=model.accepted_at,
            accepted_by=model.accepted_by,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            email=entity.email,
            role=entity.role.value,
            token_hash=entity.token_hash,
            invited_by=entity.invited_by,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            accepted_at=entity.accepted_at,
            accepted_by=entity.accepted_by,
        )
