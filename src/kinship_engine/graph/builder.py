"""Relationship graph construction.

Turns a flat list of directed relationship facts into a bidirectional
adjacency structure. Nodes live in an arena addressed by integer index;
adjacency lists are tuples, so a built graph is safe to share between
concurrent read-only traversals.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..logging import get_logger
from ..models.person import Person, RelationshipFact
from ..models.relation import Direction, Relation

logger = get_logger(__name__)


@dataclass(frozen=True)
class Edge:
    """A directed edge: ``to_id`` is ``from_id``'s ``relation``."""
    from_id: str
    to_id: str
    relation: Relation
    direction: Direction

    def reversed(self) -> Edge:
        """The paired edge every fact also produces."""
        return Edge(
            from_id=self.to_id,
            to_id=self.from_id,
            relation=self.relation.inverse(),
            direction=self.direction.inverted(),
        )


@dataclass(frozen=True)
class RelationshipGraph:
    """Arena of person nodes plus per-node adjacency."""
    nodes: tuple[Person, ...]
    adjacency: tuple[tuple[Edge, ...], ...]
    index: dict[str, int] = field(repr=False, compare=False)
    unknown_relations: frozenset[str] = frozenset()

    def __contains__(self, person_id: object) -> bool:
        return person_id in self.index

    def __len__(self) -> int:
        return len(self.nodes)

    def handle(self, person_id: str) -> int | None:
        """Arena index for a person id, or None if unknown."""
        return self.index.get(person_id)

    def node(self, person_id: str) -> Person | None:
        idx = self.index.get(person_id)
        return self.nodes[idx] if idx is not None else None

    def edges_from(self, person_id: str) -> tuple[Edge, ...]:
        idx = self.index.get(person_id)
        return self.adjacency[idx] if idx is not None else ()

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency)


def build_graph(
    people: Iterable[Person | str],
    facts: Iterable[RelationshipFact],
) -> RelationshipGraph:
    """Build a bidirectional relationship graph.

    Every fact yields a forward edge and its inverse. Ids that appear only in
    facts still become nodes, with whatever display attributes the fact
    carries, so traversal never stops at a partially onboarded relative.
    Unknown relation types map to themselves and are reported through the
    log rather than raised.

    Args:
        people: Known profiles (or bare ids)
        facts: Directed relationship facts

    Returns:
        RelationshipGraph ready for path finding
    """
    nodes: list[Person] = []
    index: dict[str, int] = {}
    adjacency: list[list[Edge]] = []

    def add_node(person: Person) -> int:
        idx = index.get(person.id)
        if idx is None:
            idx = len(nodes)
            index[person.id] = idx
            nodes.append(person)
            adjacency.append([])
        return idx

    for person in people:
        add_node(person if isinstance(person, Person) else Person(id=person))

    fact_list = list(facts)

    # Relatives referenced only by facts
    for fact in fact_list:
        if fact.object_id not in index:
            add_node(Person(
                id=fact.object_id,
                first_name=fact.object_first_name or "",
                last_name=fact.object_last_name or "",
            ))
        if fact.subject_id not in index:
            add_node(Person(id=fact.subject_id, first_name="Unknown"))

    unknown: set[str] = set()
    for fact in fact_list:
        relation = fact.parsed_relation
        if not relation.is_known and relation.value not in unknown:
            unknown.add(relation.value)
            logger.warning(
                "unknown_relation_type",
                relation=relation.value,
                subject_id=fact.subject_id,
                object_id=fact.object_id,
            )

        forward = Edge(
            from_id=fact.subject_id,
            to_id=fact.object_id,
            relation=relation,
            direction=relation.direction,
        )
        adjacency[index[fact.subject_id]].append(forward)
        adjacency[index[fact.object_id]].append(forward.reversed())

    graph = RelationshipGraph(
        nodes=tuple(nodes),
        adjacency=tuple(tuple(edges) for edges in adjacency),
        index=index,
        unknown_relations=frozenset(unknown),
    )
    logger.debug(
        "graph_built",
        nodes=len(graph),
        edges=graph.edge_count,
        unknown_relations=sorted(unknown),
    )
    return graph
