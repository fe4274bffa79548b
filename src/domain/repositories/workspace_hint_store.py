"""Workspace hint store protocol."""

from typing import Protocol
from uuid import UUID


class IWorkspaceHintStore(Protocol):
    """Persistence for the "last used workspace" hint.

    Values read from here are untrusted. Callers must re-check membership
    before acting on a hint.
    """

    async def get_hint(self, user_id: UUID) -> UUID | None:
        """Return the hinted workspace ID for a user, if any."""
        ...

    async def set_hint(self, user_id: UUID, workspace_id: UUID) -> None:
        """Remember the workspace a user last operated in."""
        ...

    async def clear_hint(self, user_id: UUID) -> None:
        """Forget the hint for a user."""
        ...
