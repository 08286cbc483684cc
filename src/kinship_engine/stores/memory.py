"""In-memory store adapters for tests, the CLI and single-process use."""
from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from ..exceptions import ConnectionRequestConflict, ConnectionRequestNotFound, InvalidTransition
from ..models.ancestry import AncestorRecord
from ..models.connection import ConnectionRequest, ConnectionStatus
from ..models.person import MatchingPreference, Person, RelationshipFact
from ..models.relation import RelationKind
from .base import (
    AncestorCacheStore,
    ConnectionRequestStore,
    PreferenceStore,
    ProfileStore,
    RelationshipFactStore,
)


class InMemoryProfileStore(ProfileStore):
    def __init__(self, people: Iterable[Person] = ()) -> None:
        self._people: dict[str, Person] = {p.id: p for p in people}

    def add(self, person: Person) -> Person:
        self._people[person.id] = person
        return person

    def get(self, person_id: str) -> Person | None:
        return self._people.get(person_id)

    def get_many(self, person_ids: Iterable[str]) -> dict[str, Person]:
        return {pid: self._people[pid] for pid in person_ids if pid in self._people}

    def all(self) -> list[Person]:
        return list(self._people.values())


class InMemoryFactStore(RelationshipFactStore):
    """Fact list with a parent index maintained on insert."""

    def __init__(self, facts: Iterable[RelationshipFact] = ()) -> None:
        self._lock = threading.Lock()
        self._facts: list[RelationshipFact] = []
        self._parents: dict[str, list[str]] = {}
        for fact in facts:
            self.add(fact)

    def add(self, fact: RelationshipFact) -> RelationshipFact:
        with self._lock:
            self._facts.append(fact)
            kind = fact.parsed_relation.kind
            if kind is RelationKind.PARENT:
                child, parent = fact.subject_id, fact.object_id
            elif kind is RelationKind.CHILD:
                child, parent = fact.object_id, fact.subject_id
            else:
                return fact
            parents = self._parents.setdefault(child, [])
            if parent not in parents:
                parents.append(parent)
        return fact

    def all_facts(self) -> list[RelationshipFact]:
        with self._lock:
            return list(self._facts)

    def parents_of(self, person_id: str) -> list[str]:
        with self._lock:
            return list(self._parents.get(person_id, ()))


class InMemoryPreferenceStore(PreferenceStore):
    def __init__(self, preferences: Iterable[MatchingPreference] = ()) -> None:
        self._prefs: dict[str, MatchingPreference] = {p.user_id: p for p in preferences}

    def get(self, user_id: str) -> MatchingPreference | None:
        return self._prefs.get(user_id)

    def upsert(self, preference: MatchingPreference) -> MatchingPreference:
        self._prefs[preference.user_id] = preference
        return preference


class InMemoryAncestorCacheStore(AncestorCacheStore):
    """Ancestor rows per user; ``replace`` swaps a user's rows under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, dict[str, AncestorRecord]] = {}

    def replace(self, user_id: str, records: Sequence[AncestorRecord]) -> int:
        rows = {r.ancestor_id: r for r in records}
        with self._lock:
            if rows:
                self._rows[user_id] = rows
            else:
                self._rows.pop(user_id, None)
        return len(rows)

    def get(self, user_id: str, max_depth: int | None = None) -> list[AncestorRecord]:
        with self._lock:
            rows = list(self._rows.get(user_id, {}).values())
        if max_depth is not None:
            rows = [r for r in rows if r.depth <= max_depth]
        return sorted(rows, key=lambda r: (r.depth, r.ancestor_id))

    def find_sharing(
        self,
        ancestor_ids: Iterable[str],
        exclude_user_id: str,
        max_depth: int,
    ) -> list[AncestorRecord]:
        wanted = set(ancestor_ids)
        with self._lock:
            snapshot = [
                (user_id, list(rows.values()))
                for user_id, rows in self._rows.items()
                if user_id != exclude_user_id
            ]
        return [
            record
            for _, records in snapshot
            for record in records
            if record.ancestor_id in wanted and record.depth <= max_depth
        ]

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._rows.pop(user_id, None)


class InMemoryConnectionRequestStore(ConnectionRequestStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: dict[str, ConnectionRequest] = {}

    def _active_between(self, a: str, b: str) -> ConnectionRequest | None:
        for request in self._requests.values():
            if request.status.is_active and request.links(a, b):
                return request
        return None

    def insert(self, request: ConnectionRequest) -> ConnectionRequest:
        with self._lock:
            existing = self._active_between(request.from_id, request.to_id)
            if existing is not None:
                raise ConnectionRequestConflict(request.from_id, request.to_id, existing.id)
            self._requests[request.id] = request
        return request

    def get(self, request_id: str) -> ConnectionRequest | None:
        with self._lock:
            return self._requests.get(request_id)

    def update(
        self,
        request: ConnectionRequest,
        expected: ConnectionStatus | None = None,
    ) -> ConnectionRequest:
        with self._lock:
            current = self._requests.get(request.id)
            if current is None:
                raise ConnectionRequestNotFound(request.id)
            if expected is not None and current.status is not expected:
                raise InvalidTransition(
                    request.id, current.status.value, request.status.value, "request is no longer pending"
                )
            self._requests[request.id] = request
        return request

    def list_for_user(
        self,
        user_id: str,
        status: ConnectionStatus | None = None,
        direction: str = "all",
    ) -> list[ConnectionRequest]:
        with self._lock:
            requests = list(self._requests.values())

        def wanted(r: ConnectionRequest) -> bool:
            if direction == "sent" and r.from_id != user_id:
                return False
            if direction == "received" and r.to_id != user_id:
                return False
            if direction == "all" and not r.involves(user_id):
                return False
            return status is None or r.status == status

        # Stable on insertion order for equal timestamps
        matched = [r for r in requests if wanted(r)]
        matched.reverse()
        return sorted(matched, key=lambda r: r.created_at, reverse=True)

    def has_active_between(self, a: str, b: str) -> bool:
        with self._lock:
            return self._active_between(a, b) is not None

    def active_counterparts(self, user_id: str) -> set[str]:
        with self._lock:
            return {
                r.to_id if r.from_id == user_id else r.from_id
                for r in self._requests.values()
                if r.status.is_active and r.involves(user_id)
            }
