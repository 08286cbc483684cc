"""Ancestor enumeration over parent edges.

Breadth-first, so each ancestor is recorded once at its shallowest depth.
Genealogical data is messy: a person can end up listed as their own
ancestor. Such branches are pruned and logged instead of raising.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable

from ..logging import get_logger
from ..models.ancestry import AncestorRecord
from ..models.person import RelationshipFact
from ..models.relation import RelationKind

logger = get_logger(__name__)

DEFAULT_ANCESTOR_DEPTH = 8

ParentProvider = Callable[[str], Iterable[str]]


def parent_provider_from_facts(facts: Iterable[RelationshipFact]) -> ParentProvider:
    """Build a parent lookup from facts.

    ``(s, o, parent)`` makes o a parent of s; ``(s, o, child)`` makes s a
    parent of o. Other relations are ignored.
    """
    parents: dict[str, list[str]] = {}
    for fact in facts:
        kind = fact.parsed_relation.kind
        if kind is RelationKind.PARENT:
            child, parent = fact.subject_id, fact.object_id
        elif kind is RelationKind.CHILD:
            child, parent = fact.object_id, fact.subject_id
        else:
            continue
        bucket = parents.setdefault(child, [])
        if parent not in bucket:
            bucket.append(parent)

    def provider(person_id: str) -> list[str]:
        return parents.get(person_id, [])

    return provider


def enumerate_ancestors(
    person_id: str,
    max_depth: int = DEFAULT_ANCESTOR_DEPTH,
    parent_provider: ParentProvider | None = None,
) -> list[AncestorRecord]:
    """List every ancestor of ``person_id`` within ``max_depth`` generations.

    Args:
        person_id: Descendant to start from
        max_depth: Generations to climb; 1 returns parents only
        parent_provider: Callable returning the parent ids of a person

    Returns:
        AncestorRecords ordered by depth, then discovery order. Empty when
        the person has no recorded parents.
    """
    if max_depth < 1:
        raise ValueError(f"max_depth must be >= 1, got {max_depth}")
    if parent_provider is None:
        raise ValueError("parent_provider is required")

    records: list[AncestorRecord] = []
    visited: set[str] = {person_id}
    # (person, depth, ids strictly between the subject and this person)
    queue: deque[tuple[str, int, tuple[str, ...]]] = deque([(person_id, 0, ())])

    while queue:
        current_id, depth, path = queue.popleft()
        if depth >= max_depth:
            continue

        branch = path + (current_id,) if depth > 0 else ()
        for parent_id in parent_provider(current_id):
            if parent_id == person_id or parent_id in branch:
                logger.warning(
                    "ancestor_cycle_pruned",
                    person_id=person_id,
                    at=current_id,
                    parent_id=parent_id,
                    depth=depth + 1,
                )
                continue
            if parent_id in visited:
                # Already recorded at the same or a shallower depth
                continue
            visited.add(parent_id)
            records.append(
                AncestorRecord(
                    descendant_id=person_id,
                    ancestor_id=parent_id,
                    depth=depth + 1,
                    path=branch,
                )
            )
            queue.append((parent_id, depth + 1, branch))

    return records
