"""Shortest relationship paths between two people.

Breadth-first search over a RelationshipGraph. Every edge has unit cost, so
the first time the target is reached the path is a shortest one. A missing
path is a valid answer and is returned as ``None``.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from ..logging import get_logger
from ..models.kinship import KinshipDescriptor
from ..models.relation import Direction, Relation
from .builder import Edge, RelationshipGraph

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 15


@dataclass(frozen=True)
class PathStep:
    """One person on a path plus the relation leading to the next person.

    ``relation_to_next`` reads "the next person is this person's <relation>".
    Both trailing fields are None on the last step.
    """
    person_id: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: str | None = None
    gender: str | None = None
    relation_to_next: Relation | None = None
    direction_to_next: Direction | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "person_id": self.person_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
            "gender": self.gender,
            "relation_to_next": self.relation_to_next.value if self.relation_to_next else None,
            "direction_to_next": self.direction_to_next.value if self.direction_to_next else None,
        }


@dataclass(frozen=True)
class PathResult:
    """Ordered steps from start to end."""
    steps: tuple[PathStep, ...]
    edges: tuple[Edge, ...] = field(default=(), repr=False)

    @property
    def degree(self) -> int:
        """Number of hops between start and end."""
        return len(self.steps) - 1

    @property
    def person_ids(self) -> list[str]:
        return [s.person_id for s in self.steps]

    @property
    def relations(self) -> list[Relation]:
        """Relation chain consumed by the degree classifier."""
        return [s.relation_to_next for s in self.steps if s.relation_to_next is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "degree": self.degree,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class RelationshipResult:
    """A path together with its classification."""
    path: PathResult
    kinship: KinshipDescriptor

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path.to_dict(),
            "kinship": self.kinship.model_dump(mode="json"),
        }


def _step_for(graph: RelationshipGraph, person_id: str, edge: Edge | None) -> PathStep:
    node = graph.node(person_id)
    return PathStep(
        person_id=person_id,
        first_name=node.first_name if node else "Unknown",
        last_name=node.last_name if node else "",
        avatar_url=node.avatar_url if node else None,
        gender=node.gender if node else None,
        relation_to_next=edge.relation if edge else None,
        direction_to_next=edge.direction if edge else None,
    )


def find_path(
    graph: RelationshipGraph,
    start_id: str,
    end_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> PathResult | None:
    """Find a shortest relationship path between two people.

    Args:
        graph: Graph built by ``build_graph``
        start_id: Person the path starts from
        end_id: Person the path ends at
        max_depth: Maximum hops; a safety bound against pathological data

    Returns:
        PathResult, or None when either id is unknown or no path exists
        within ``max_depth`` hops
    """
    if max_depth < 1:
        raise ValueError(f"max_depth must be >= 1, got {max_depth}")

    if start_id == end_id:
        if start_id not in graph:
            return None
        return PathResult(steps=(_step_for(graph, start_id, None),))

    if start_id not in graph or end_id not in graph:
        return None

    # person -> (predecessor, edge used to reach person)
    visited: dict[str, tuple[str | None, Edge | None]] = {start_id: (None, None)}
    queue: deque[tuple[str, int]] = deque([(start_id, 0)])

    while queue:
        current_id, depth = queue.popleft()
        if depth >= max_depth:
            continue

        for edge in graph.edges_from(current_id):
            if edge.to_id in visited:
                continue
            visited[edge.to_id] = (current_id, edge)
            if edge.to_id == end_id:
                return _reconstruct(graph, visited, end_id)
            queue.append((edge.to_id, depth + 1))

    logger.debug("path_not_found", start_id=start_id, end_id=end_id, max_depth=max_depth)
    return None


def _reconstruct(
    graph: RelationshipGraph,
    visited: dict[str, tuple[str | None, Edge | None]],
    end_id: str,
) -> PathResult:
    """Walk predecessors back from the end, then attach each edge to the step it leaves."""
    ids: list[str] = []
    edges: list[Edge] = []
    current: str | None = end_id
    while current is not None:
        ids.append(current)
        prev_id, edge = visited[current]
        if edge is not None:
            edges.append(edge)
        current = prev_id

    ids.reverse()
    edges.reverse()

    steps = [
        _step_for(graph, person_id, edges[i] if i < len(edges) else None)
        for i, person_id in enumerate(ids)
    ]
    return PathResult(steps=tuple(steps), edges=tuple(edges))


def find_relationship(
    graph: RelationshipGraph,
    start_id: str,
    end_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> RelationshipResult | None:
    """Find a shortest path and classify it."""
    from .classifier import classify

    path = find_path(graph, start_id, end_id, max_depth=max_depth)
    if path is None:
        return None
    return RelationshipResult(path=path, kinship=classify(path))
