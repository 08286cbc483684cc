"""Connection requests proposed from relative matches."""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_utils import uuid7 as _uuid7


def uuid7() -> UUID:
    """Generate a UUID7 compatible with stdlib UUID."""
    return UUID(str(_uuid7()))


class ConnectionStatus(str, Enum):
    """Lifecycle of a connection request."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ConnectionStatus.PENDING

    @property
    def is_active(self) -> bool:
        """Pending and accepted requests block a new request between the same pair."""
        return self in (ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED)


ACTIVE_STATUSES = frozenset({ConnectionStatus.PENDING, ConnectionStatus.ACCEPTED})


class ConnectionRequest(BaseModel):
    """A proposed connection between two people who share an ancestor."""

    id: str = Field(default_factory=lambda: str(uuid7()))
    from_id: str
    to_id: str
    shared_ancestor_id: str | None = None
    status: ConnectionStatus = ConnectionStatus.PENDING
    message: str | None = None
    relationship_description: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    responded_at: datetime | None = None

    def involves(self, person_id: str) -> bool:
        return person_id in (self.from_id, self.to_id)

    def links(self, a: str, b: str) -> bool:
        """True if the request joins ``a`` and ``b`` in either direction."""
        return {self.from_id, self.to_id} == {a, b}
