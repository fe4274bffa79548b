"""SQLAlchemy implementation of Workspace repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.role import Role
from domain.entities.workspace import Workspace, WorkspaceMember, WorkspaceWithRole
from infrastructure.database.models import (
    InvitationModel,
    WorkspaceMemberModel,
    WorkspaceModel,
)


class SQLAlchemyWorkspaceRepository:
    """SQLAlchemy implementation of IWorkspaceRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        model = await self._session.get(WorkspaceModel, id)
        return self._to_entity(model) if model else None

    async def get_for_update(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID with a row lock (SELECT ... FOR UPDATE)."""
        stmt = select(WorkspaceModel).where(WorkspaceModel.id == id).with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Workspace | None:
        """Get a workspace by slug."""
        stmt = select(WorkspaceModel).where(WorkspaceModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all_for_user(self, user_id: UUID) -> list[Workspace]:
        """Get all active workspaces a user is an active member of."""
        return [item.workspace for item in await self.get_active_memberships(user_id)]

    async def get_active_memberships(self, user_id: UUID) -> list[WorkspaceWithRole]:
        """Active memberships in active workspaces, oldest membership first."""
        stmt = (
            select(WorkspaceModel, WorkspaceMemberModel)
            .join(
                WorkspaceMemberModel,
                WorkspaceMemberModel.workspace_id == WorkspaceModel.id,
            )
            .where(
                WorkspaceMemberModel.user_id == user_id,
                WorkspaceMemberModel.is_active.is_(True),
                WorkspaceModel.is_active.is_(True),
            )
            .order_by(WorkspaceMemberModel.joined_at, WorkspaceModel.id)
        )
        result = await self._session.execute(stmt)
        return [
            WorkspaceWithRole(
                workspace=self._to_entity(workspace),
                role=Role(member.role),
                joined_at=member.joined_at,
            )
            for workspace, member in result.all()
        ]

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        model = self._to_model(workspace)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, workspace: Workspace) -> Workspace:
        """Update an existing workspace."""
        model = await self._session.get(WorkspaceModel, workspace.id)

        if not model:
            raise ValueError(f"Workspace {workspace.id} not found")

        model.name = workspace.name
        model.slug = workspace.slug
        model.description = workspace.description
        model.is_active = workspace.is_active
        model.settings = workspace.settings
        model.updated_at = workspace.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a workspace, its memberships and its invitations.

        Dependent rows are removed explicitly so the cascade does not rely on
        the database enforcing foreign keys.
        """
        model = await self._session.get(WorkspaceModel, id)

        if not model:
            return False

        await self._session.execute(
            delete(WorkspaceMemberModel).where(WorkspaceMemberModel.workspace_id == id)
        )
        await self._session.execute(
            delete(InvitationModel).where(InvitationModel.workspace_id == id)
        )
        await self._session.execute(delete(WorkspaceModel).where(WorkspaceModel.id == id))
        await self._session.flush()
        return True

    async def get_member(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get a workspace member by workspace and user IDs."""
        model = await self._get_member_model(workspace_id, user_id)
        return self._member_to_entity(model) if model else None

    async def get_active_member(
        self, workspace_id: UUID, user_id: UUID
    ) -> WorkspaceMember | None:
        """Get an active membership in an active workspace."""
        stmt = (
            select(WorkspaceMemberModel)
            .join(WorkspaceModel, WorkspaceModel.id == WorkspaceMemberModel.workspace_id)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.user_id == user_id,
                WorkspaceMemberModel.is_active.is_(True),
                WorkspaceModel.is_active.is_(True),
            )
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._member_to_entity(model) if model else None

    async def get_members(
        self, workspace_id: UUID, include_inactive: bool = False
    ) -> list[WorkspaceMember]:
        """Get members of a workspace, oldest first."""
        stmt = select(WorkspaceMemberModel).where(
            WorkspaceMemberModel.workspace_id == workspace_id
        )
        if not include_inactive:
            stmt = stmt.where(WorkspaceMemberModel.is_active.is_(True))
        stmt = stmt.order_by(WorkspaceMemberModel.joined_at)
        result = await self._session.execute(stmt)
        return [self._member_to_entity(model) for model in result.scalars()]

    async def add_member(self, member: WorkspaceMember) -> WorkspaceMember:
        """Add a member to a workspace.

        A duplicate (workspace_id, user_id) raises IntegrityError on flush.
        """
        model = self._member_to_model(member)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def update_member_role(
        self, workspace_id: UUID, user_id: UUID, role: Role
    ) -> WorkspaceMember:
        """Update a member's role in a workspace."""
        model = await self._get_member_model(workspace_id, user_id)

        if not model:
            raise ValueError("Member not found in workspace")

        model.role = role.value
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return self._member_to_entity(model)

    async def set_member_active(
        self, workspace_id: UUID, user_id: UUID, is_active: bool, role: Role | None = None
    ) -> WorkspaceMember:
        """Activate or deactivate a membership, optionally changing its role."""
        model = await self._get_member_model(workspace_id, user_id)

        if not model:
            raise ValueError("Member not found in workspace")

        model.is_active = is_active
        if role is not None:
            model.role = role.value
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, workspace_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a workspace."""
        model = await self._get_member_model(workspace_id, user_id)

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_members(self, workspace_id: UUID) -> int:
        """Count the active members of a workspace."""
        stmt = (
            select(func.count())
            .select_from(WorkspaceMemberModel)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.is_active.is_(True),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _get_member_model(
        self, workspace_id: UUID, user_id: UUID
    ) -> WorkspaceMemberModel | None:
        stmt = select(WorkspaceMemberModel).where(
            WorkspaceMemberModel.workspace_id == workspace_id,
            WorkspaceMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: WorkspaceModel) -> Workspace:
        """Convert ORM model to domain entity."""
        return Workspace(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            owner_id=model.owner_id,
            is_active=model.is_active,
            settings=model.settings or {},
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Workspace) -> WorkspaceModel:
        """Convert domain entity to ORM model."""
        return WorkspaceModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            owner_id=entity.owner_id,
            is_active=entity.is_active,
            settings=entity.settings,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(self, model: WorkspaceMemberModel) -> WorkspaceMember:
        """Convert member ORM model to domain entity."""
        return WorkspaceMember(
            workspace_id=model.workspace_id,
            user_id=model.user_id,
            role=Role(model.role),
            is_active=model.is_active,
            joined_at=model.joined_at,
            updated_at=model.updated_at,
            invited_by=model.invited_by,
        )

    def _member_to_model(self, entity: WorkspaceMember) -> WorkspaceMemberModel:
        """Convert member domain entity to ORM model."""
        return WorkspaceMemberModel(
            workspace_id=entity.workspace_id,
            user_id=entity.user_id,
            role=entity.role.value,
            is_active=entity.is_active,
            joined_at=entity.joined_at,
            updated_at=entity.updated_at,
            invited_by=entity.invited_by,
        )
