"""Data models for people, relations, kinship and connection requests."""

from .ancestry import AncestorRecord, MatchCandidate, SharedAncestor
from .connection import ACTIVE_STATUSES, ConnectionRequest, ConnectionStatus
from .kinship import KinshipCategory, KinshipDescriptor, RelationshipPatternType
from .person import Gender, MatchingPreference, Person, RelationshipFact
from .relation import Direction, Relation, RelationKind, inverse_relation, relation_direction

__all__ = [
    "Person",
    "Gender",
    "RelationshipFact",
    "MatchingPreference",
    "Relation",
    "RelationKind",
    "Direction",
    "inverse_relation",
    "relation_direction",
    "KinshipCategory",
    "KinshipDescriptor",
    "RelationshipPatternType",
    "AncestorRecord",
    "MatchCandidate",
    "SharedAncestor",
    "ConnectionRequest",
    "ConnectionStatus",
    "ACTIVE_STATUSES",
]
