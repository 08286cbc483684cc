"""Exceptions raised by the kinship engine.

Structurally empty outcomes (unknown person, no path, no candidates) are
return values, not exceptions. Only StoreUnavailable is worth retrying.
"""
from __future__ import annotations

from dataclasses import dataclass


class KinshipEngineError(Exception):
    """Base class for kinship engine errors."""


@dataclass
class StoreUnavailable(KinshipEngineError):
    """An upstream store (profiles, facts, cache, requests) could not be reached."""

    store: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.store} unavailable: {self.detail}" if self.detail else f"{self.store} unavailable"


@dataclass
class InvalidConnectionRequest(KinshipEngineError):
    """The request itself is malformed (e.g. a person asking to connect to themselves)."""

    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass
class ConnectionRequestConflict(KinshipEngineError):
    """A pending or accepted request already links the two people."""

    from_id: str
    to_id: str
    existing_id: str | None = None

    def __str__(self) -> str:
        base = f"active connection request already exists between {self.from_id} and {self.to_id}"
        if self.existing_id:
            base += f" (request {self.existing_id})"
        return base


@dataclass
class ConnectionRequestNotFound(KinshipEngineError):
    request_id: str

    def __str__(self) -> str:
        return f"connection request {self.request_id} not found"


@dataclass
class InvalidTransition(KinshipEngineError):
    """A status change the connection-request state machine does not allow."""

    request_id: str
    current: str
    requested: str
    reason: str = ""

    def __str__(self) -> str:
        base = f"cannot move request {self.request_id} from {self.current} to {self.requested}"
        return f"{base}: {self.reason}" if self.reason else base
