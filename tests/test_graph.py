"""Tests for graph building and shortest-path search."""
from __future__ import annotations

import pytest

from kinship_engine.graph import build_graph, classify, find_path, find_relationship
from kinship_engine.models import (
    Direction,
    KinshipCategory,
    Person,
    RelationKind,
    RelationshipFact,
)


def fact(subject: str, obj: str, relation: str, **kwargs) -> RelationshipFact:
    return RelationshipFact(subject_id=subject, object_id=obj, relation=relation, **kwargs)


@pytest.fixture()
def three_generations():
    """A's parent is B, B's parent is C."""
    people = [
        Person(id="A", first_name="Ada", last_name="Stone"),
        Person(id="B", first_name="Bea", last_name="Stone"),
        Person(id="C", first_name="Cal", last_name="Stone"),
    ]
    facts = [fact("A", "B", "parent"), fact("B", "C", "parent")]
    return build_graph(people, facts)


class TestBuildGraph:
    """Tests for build_graph."""

    def test_every_fact_yields_two_edges(self, three_generations):
        """Test forward and inverse edges are both added."""
        graph = three_generations

        assert len(graph) == 3
        assert graph.edge_count == 4

        (forward,) = graph.edges_from("A")
        assert forward.to_id == "B"
        assert forward.relation.kind is RelationKind.PARENT
        assert forward.direction is Direction.UP

        inverse = [e for e in graph.edges_from("B") if e.to_id == "A"][0]
        assert inverse.relation.kind is RelationKind.CHILD
        assert inverse.direction is Direction.DOWN

    def test_object_only_nodes_use_fact_names(self):
        """Test relatives without a profile still become nodes."""
        graph = build_graph(
            [Person(id="A")],
            [fact("A", "X", "parent", object_first_name="Xena", object_last_name="Vale")],
        )

        assert "X" in graph
        assert graph.node("X").first_name == "Xena"
        assert graph.node("X").last_name == "Vale"

    def test_subject_only_nodes_are_unknown(self):
        """Test subjects without a profile get a placeholder name."""
        graph = build_graph([], [fact("A", "B", "sibling")])

        assert graph.node("A").first_name == "Unknown"
        assert graph.handle("A") is not None
        assert graph.handle("Z") is None

    def test_bare_ids_accepted(self):
        """Test people can be given as plain ids."""
        graph = build_graph(["A", "B"], [])

        assert len(graph) == 2
        assert graph.edges_from("A") == ()

    def test_unknown_relation_degrades(self):
        """Test unknown relation types are kept with an identity inverse."""
        graph = build_graph([], [fact("A", "B", "godparent")])

        assert graph.unknown_relations == frozenset({"godparent"})
        (back,) = graph.edges_from("B")
        assert back.relation.value == "godparent"
        assert back.direction is Direction.LATERAL

    def test_duplicate_facts_keep_shortest_path(self):
        """Test duplicate facts only add parallel edges."""
        facts = [fact("A", "B", "parent"), fact("A", "B", "parent")]
        graph = build_graph([], facts)

        assert graph.edge_count == 4
        assert find_path(graph, "A", "B").degree == 1


class TestFindPath:
    """Tests for find_path."""

    def test_end_to_end_grandparent(self, three_generations):
        """Test A -> parent -> B -> parent -> C classifies as grandparent."""
        path = find_path(three_generations, "A", "C")

        assert path.person_ids == ["A", "B", "C"]
        assert [s.relation_to_next.value for s in path.steps[:-1]] == ["parent", "parent"]
        assert path.steps[-1].relation_to_next is None
        assert path.steps[0].first_name == "Ada"

        kinship = classify(["parent", "parent"])
        assert kinship.category is KinshipCategory.DIRECT
        assert kinship.generation_delta == 2
        assert classify(path) == kinship

    def test_same_person(self, three_generations):
        """Test a known id yields a single-step path."""
        path = find_path(three_generations, "B", "B")

        assert path.degree == 0
        assert path.person_ids == ["B"]
        assert find_path(three_generations, "Z", "Z") is None

    def test_unknown_ids(self, three_generations):
        """Test unknown ids are a valid empty outcome."""
        assert find_path(three_generations, "A", "Z") is None
        assert find_path(three_generations, "Z", "A") is None

    def test_symmetry(self, three_generations):
        """Test degree is the same in both directions."""
        forward = find_path(three_generations, "A", "C")
        backward = find_path(three_generations, "C", "A")

        assert forward.degree == backward.degree == 2
        assert [r.value for r in backward.relations] == ["child", "child"]

    def test_max_depth_bound(self):
        """Test paths longer than max_depth are not found."""
        facts = [fact("A", "B", "parent"), fact("B", "C", "parent"), fact("C", "D", "parent")]
        graph = build_graph([], facts)

        assert find_path(graph, "A", "D", max_depth=2) is None
        assert find_path(graph, "A", "D", max_depth=3).degree == 3

    def test_disconnected(self):
        """Test separate families have no path."""
        graph = build_graph([], [fact("A", "B", "parent"), fact("X", "Y", "parent")])
        assert find_path(graph, "A", "Y") is None

    def test_shortest_path_wins(self):
        """Test BFS prefers the direct edge over a detour."""
        facts = [
            fact("A", "B", "parent"),
            fact("B", "C", "sibling"),
            fact("C", "D", "child"),
            fact("A", "D", "cousin"),
        ]
        graph = build_graph([], facts)

        path = find_path(graph, "A", "D")
        assert path.degree == 1
        assert path.relations[0].kind is RelationKind.COUSIN

    def test_cyclic_data_terminates(self):
        """Test cyclic parent facts do not hang the search."""
        facts = [fact("A", "B", "parent"), fact("B", "A", "parent")]
        graph = build_graph([], facts)

        assert find_path(graph, "A", "B").degree == 1
        assert find_path(graph, "A", "Z") is None

    def test_invalid_max_depth(self, three_generations):
        """Test a non-positive bound is rejected."""
        with pytest.raises(ValueError):
            find_path(three_generations, "A", "C", max_depth=0)

    def test_to_dict(self, three_generations):
        """Test serialization."""
        data = find_path(three_generations, "A", "B").to_dict()

        assert data["degree"] == 1
        assert data["steps"][0]["relation_to_next"] == "parent"
        assert data["steps"][0]["direction_to_next"] == "up"
        assert data["steps"][1]["relation_to_next"] is None


class TestFindRelationship:
    """Tests for find_relationship."""

    def test_cousins(self):
        """Test a path through a sibling pair classifies as first cousins."""
        facts = [
            fact("A", "P", "parent"),
            fact("P", "Q", "sibling"),
            fact("B", "Q", "parent"),
        ]
        graph = build_graph([], facts)

        result = find_relationship(graph, "A", "B")

        assert result.path.person_ids == ["A", "P", "Q", "B"]
        assert result.kinship.category is KinshipCategory.COUSIN
        assert result.kinship.cousin_degree == 1
        assert result.kinship.removal == 0
        assert result.to_dict()["kinship"]["category"] == "cousin"

    def test_no_path(self, three_generations):
        """Test missing paths return None."""
        assert find_relationship(three_generations, "A", "Z") is None
