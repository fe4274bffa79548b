"""Authenticated caller as seen by domain services."""

from dataclasses import dataclass, field
from uuid import UUID

from domain.entities.audit import RequestContext


@dataclass(frozen=True)
class Caller:
    """Who is making a request.

    Carries identity only. Any role claim from the identity provider is
    absent: workspace roles always come from a live membership.
    """

    id: UUID
    email: str
    display_name: str | None = None
    request: RequestContext = field(default_factory=RequestContext)

    @property
    def label(self) -> str:
        return self.display_name or self.email
