"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Profile:
    """User directory entry (synced from Supabase on login)."""

    id: UUID = field(default_factory=uuid4)
    email: str = ""
    display_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def label(self) -> str:
        """Name to show in emails and member lists."""
        return self.display_name or self.email
