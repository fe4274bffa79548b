"""Process-local workspace hint store."""

from collections import OrderedDict
from uuid import UUID


class InMemoryWorkspaceHintStore:
    """Bounded LRU map of user ID to last-used workspace ID.

    Hints are lost on restart, which only costs one slow-path resolution.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        self._max_entries = max_entries
        self._hints: OrderedDict[UUID, UUID] = OrderedDict()

    async def get_hint(self, user_id: UUID) -> UUID | None:
        workspace_id = self._hints.get(user_id)
        if workspace_id is not None:
            self._hints.move_to_end(user_id)
        return workspace_id

    async def set_hint(self, user_id: UUID, workspace_id: UUID) -> None:
        self._hints[user_id] = workspace_id
        self._hints.move_to_end(user_id)
        while len(self._hints) > self._max_entries:
            self._hints.popitem(last=False)

    async def clear_hint(self, user_id: UUID) -> None:
        self._hints.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._hints)
