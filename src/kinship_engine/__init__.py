"""Kinship Engine - relationship paths and relative matching for family graphs.

Pairwise: build a graph from relationship facts, find the shortest path
between two people and classify it into a kinship degree.

Population: cache every person's ancestors, match people who share one,
and manage the connection requests that follow.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConnectionRequestConflict,
    ConnectionRequestNotFound,
    InvalidConnectionRequest,
    InvalidTransition,
    KinshipEngineError,
    StoreUnavailable,
)
from .graph import build_graph, classify, descriptor_from_depths, find_path, find_relationship
from .relatives import (
    AncestorCache,
    ConnectionRequestService,
    RelativeMatcher,
    enumerate_ancestors,
    parent_provider_from_facts,
)

__all__ = [
    "__version__",
    "build_graph",
    "find_path",
    "find_relationship",
    "classify",
    "descriptor_from_depths",
    "enumerate_ancestors",
    "parent_provider_from_facts",
    "AncestorCache",
    "RelativeMatcher",
    "ConnectionRequestService",
    "KinshipEngineError",
    "StoreUnavailable",
    "InvalidConnectionRequest",
    "ConnectionRequestConflict",
    "ConnectionRequestNotFound",
    "InvalidTransition",
]
