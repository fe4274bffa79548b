"""User profile repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.profile import Profile


class IUserRepository(Protocol):
    """Read access to the user directory."""

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        ...

    async def get_by_email(self, email: str) -> Profile | None:
        """Get a profile by email, case-insensitively."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[Profile]:
        """Get the profiles for a set of user IDs."""
        ...

    async def upsert(self, profile: Profile) -> Profile:
        """Insert a profile or refresh its email and display name."""
        ...
