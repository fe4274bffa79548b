"""SQLAlchemy implementation of the user profile repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.profile import Profile
from infrastructure.database.models import ProfileModel


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Profile | None:
        model = await self._session.get(ProfileModel, id)
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Profile | None:
        stmt = select(ProfileModel).where(
            func.lower(ProfileModel.email) == email.strip().lower()
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def get_many(self, ids: list[UUID]) -> list[Profile]:
        if not ids:
            return []
        stmt = select(ProfileModel).where(ProfileModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def upsert(self, profile: Profile) -> Profile:
        """Insert a profile or refresh its email and display name."""
        model = await self._session.get(ProfileModel, profile.id)
        if model is None:
            model = ProfileModel(
                id=profile.id,
                email=profile.email,
                display_name=profile.display_name,
                avatar_url=profile.avatar_url,
            )
            self._session.add(model)
        else:
            model.email = profile.email
            if profile.display_name is not None:
                model.display_name = profile.display_name
            model.updated_at = datetime.utcnow()
        await self._session.flush()
        return self._to_entity(model)

    def _to_entity(self, model: ProfileModel) -> Profile:
        return Profile(
            id=model.id,
            email=model.email,
            display_name=model.display_name,
            avatar_url=model.avatar_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
