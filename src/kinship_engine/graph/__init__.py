"""Pairwise relationship computation.

- Graph building from directed relationship facts
- Shortest-path search (BFS) between two people
- Kinship classification of the resulting relation chain
"""
from .builder import Edge, RelationshipGraph, build_graph
from .classifier import (
    RelationshipPattern,
    analyze_pattern,
    classify,
    descriptor_from_depths,
    relation_chain,
)
from .path_finder import (
    DEFAULT_MAX_DEPTH,
    PathResult,
    PathStep,
    RelationshipResult,
    find_path,
    find_relationship,
)

__all__ = [
    # Graph
    "Edge",
    "RelationshipGraph",
    "build_graph",
    # Path finding
    "DEFAULT_MAX_DEPTH",
    "PathResult",
    "PathStep",
    "RelationshipResult",
    "find_path",
    "find_relationship",
    # Classification
    "RelationshipPattern",
    "analyze_pattern",
    "classify",
    "descriptor_from_depths",
    "relation_chain",
]
