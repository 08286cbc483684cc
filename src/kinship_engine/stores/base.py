"""Store contracts the engine needs from its collaborators.

Adapters raise StoreUnavailable when their backend cannot be reached; that
is the only error callers are expected to retry.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from ..models.ancestry import AncestorRecord
from ..models.connection import ConnectionRequest, ConnectionStatus
from ..models.person import MatchingPreference, Person, RelationshipFact
from ..models.relation import RelationKind


class ProfileStore(ABC):
    """Person id -> display attributes."""

    @abstractmethod
    def get(self, person_id: str) -> Person | None:
        """Get a profile by id."""
        ...

    @abstractmethod
    def get_many(self, person_ids: Iterable[str]) -> dict[str, Person]:
        """Get the profiles that exist among ``person_ids``."""
        ...

    @abstractmethod
    def all(self) -> list[Person]:
        """All known profiles."""
        ...


class RelationshipFactStore(ABC):
    """Directed relationship facts, possibly unverified."""

    @abstractmethod
    def all_facts(self) -> list[RelationshipFact]:
        """Every fact, in insertion order."""
        ...

    def parents_of(self, person_id: str) -> list[str]:
        """Ids recorded as parents of ``person_id``.

        ``(s, o, parent)`` makes o a parent of s; ``(s, o, child)`` makes s
        a parent of o.
        """
        parents: list[str] = []
        for fact in self.all_facts():
            kind = fact.parsed_relation.kind
            if kind is RelationKind.PARENT and fact.subject_id == person_id:
                candidate = fact.object_id
            elif kind is RelationKind.CHILD and fact.object_id == person_id:
                candidate = fact.subject_id
            else:
                continue
            if candidate not in parents:
                parents.append(candidate)
        return parents

    def connected_ids(self, person_id: str) -> set[str]:
        """People linked to ``person_id`` by a verified fact, in either direction."""
        connected: set[str] = set()
        for fact in self.all_facts():
            if not fact.verified:
                continue
            if fact.subject_id == person_id:
                connected.add(fact.object_id)
            elif fact.object_id == person_id:
                connected.add(fact.subject_id)
        return connected


class PreferenceStore(ABC):
    """Per-person matching opt-in."""

    @abstractmethod
    def get(self, user_id: str) -> MatchingPreference | None:
        ...

    @abstractmethod
    def upsert(self, preference: MatchingPreference) -> MatchingPreference:
        ...

    def opted_in(self, user_ids: Iterable[str]) -> set[str]:
        """Ids with an explicit opt-in. Missing preferences count as opted out."""
        allowed: set[str] = set()
        for user_id in user_ids:
            pref = self.get(user_id)
            if pref is not None and pref.allow_matching:
                allowed.add(user_id)
        return allowed


class AncestorCacheStore(ABC):
    """Derived ancestor rows keyed by (user_id, ancestor_id)."""

    @abstractmethod
    def replace(self, user_id: str, records: Sequence[AncestorRecord]) -> int:
        """Atomically delete every row for ``user_id`` and insert ``records``.

        Returns:
            Number of rows written
        """
        ...

    @abstractmethod
    def get(self, user_id: str, max_depth: int | None = None) -> list[AncestorRecord]:
        """Cached rows for a user, shallowest first."""
        ...

    @abstractmethod
    def find_sharing(
        self,
        ancestor_ids: Iterable[str],
        exclude_user_id: str,
        max_depth: int,
    ) -> list[AncestorRecord]:
        """Rows of other users whose ancestor is one of ``ancestor_ids``."""
        ...

    @abstractmethod
    def clear(self, user_id: str) -> None:
        ...


class ConnectionRequestStore(ABC):
    """Persistence for the connection-request workflow."""

    @abstractmethod
    def insert(self, request: ConnectionRequest) -> ConnectionRequest:
        """Insert a request.

        Raises:
            ConnectionRequestConflict: a pending or accepted request already
                links the pair in either direction (checked atomically)
        """
        ...

    @abstractmethod
    def get(self, request_id: str) -> ConnectionRequest | None:
        ...

    @abstractmethod
    def update(
        self,
        request: ConnectionRequest,
        expected: ConnectionStatus | None = None,
    ) -> ConnectionRequest:
        """Write ``request`` over the stored row with the same id.

        With ``expected`` set the write is a compare-and-set: it only applies
        while the stored status still equals ``expected``.

        Raises:
            ConnectionRequestNotFound: no row has ``request.id``
            InvalidTransition: the stored status is no longer ``expected``
        """
        ...

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        status: ConnectionStatus | None = None,
        direction: str = "all",
    ) -> list[ConnectionRequest]:
        """Requests sent and/or received by ``user_id``, newest first."""
        ...

    @abstractmethod
    def has_active_between(self, a: str, b: str) -> bool:
        """True if a pending or accepted request links ``a`` and ``b``."""
        ...

    @abstractmethod
    def active_counterparts(self, user_id: str) -> set[str]:
        """Everyone ``user_id`` has a pending or accepted request with."""
        ...
