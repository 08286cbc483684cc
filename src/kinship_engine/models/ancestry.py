"""Ancestor cache rows and match candidates."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .kinship import KinshipDescriptor
from .person import Person


@dataclass(frozen=True)
class AncestorRecord:
    """One ancestor of one person.

    ``path`` holds the ids strictly between descendant and ancestor, nearest
    to the descendant first; it is empty for a parent. Derived data: always
    re-derivable from the fact list.
    """
    descendant_id: str
    ancestor_id: str
    depth: int  # 1=parent, 2=grandparent, etc.
    path: tuple[str, ...] = ()
    computed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.depth < 1:
            raise ValueError(f"ancestor depth must be >= 1, got {self.depth}")
        if len(self.path) != self.depth - 1:
            raise ValueError(
                f"path of {len(self.path)} ids does not match depth {self.depth}"
            )

    def to_row(self) -> dict[str, Any]:
        """Serialize to the persisted cache row shape."""
        return {
            "user_id": self.descendant_id,
            "ancestor_id": self.ancestor_id,
            "depth": self.depth,
            "path": list(self.path),
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class MatchCandidate:
    """A person sharing an ancestor with the subject, not yet connected.

    ``candidate`` and ``shared_ancestor`` hold display profiles when the
    matcher was given a profile store and the person has a profile.
    """
    subject_id: str
    candidate_id: str
    shared_ancestor_id: str
    subject_depth: int
    candidate_depth: int
    relationship: KinshipDescriptor | None = None
    candidate: Person | None = None
    shared_ancestor: Person | None = None

    @property
    def closeness(self) -> int:
        """Sum of both depths to the shared ancestor; lower is closer."""
        return self.subject_depth + self.candidate_depth

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "candidate_id": self.candidate_id,
            "shared_ancestor_id": self.shared_ancestor_id,
            "subject_depth": self.subject_depth,
            "candidate_depth": self.candidate_depth,
            "closeness": self.closeness,
            "relationship": self.relationship.model_dump(mode="json") if self.relationship else None,
            "candidate": self.candidate.model_dump(mode="json") if self.candidate else None,
            "shared_ancestor": self.shared_ancestor.model_dump(mode="json") if self.shared_ancestor else None,
        }


@dataclass(frozen=True)
class SharedAncestor:
    """An ancestor two people have in common, with each one's depth to it."""
    ancestor_id: str
    first_depth: int
    second_depth: int
    ancestor: Person | None = None

    @property
    def closeness(self) -> int:
        return self.first_depth + self.second_depth

    @property
    def name(self) -> str:
        return self.ancestor.display_name if self.ancestor else "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "ancestor_id": self.ancestor_id,
            "first_depth": self.first_depth,
            "second_depth": self.second_depth,
            "closeness": self.closeness,
            "name": self.name,
        }
