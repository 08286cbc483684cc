"""Relation vocabulary for family-graph edges.

A relation reads "object is subject's <relation>": for the fact
``(alice, bob, parent)`` Bob is Alice's parent. Relation strings from the
fact store are parsed into a closed set of kinds. Grandparent and grandchild
chains carry a ``greats`` count so that ``great-great-grandparent`` needs no
table entry of its own. Anything unrecognised becomes ``RelationKind.OTHER``
and keeps its raw text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class RelationKind(str, Enum):
    """Kinds of relation a fact can assert."""
    PARENT = "parent"
    CHILD = "child"
    GRANDPARENT = "grandparent"  # greats > 0 for great-grandparent and beyond
    GRANDCHILD = "grandchild"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    COUSIN = "cousin"
    AUNT = "aunt"
    UNCLE = "uncle"
    AUNT_UNCLE = "aunt_uncle"  # Gender unknown
    NIECE = "niece"
    NEPHEW = "nephew"
    NIECE_NEPHEW = "niece_nephew"  # Gender unknown
    OTHER = "other"


class Direction(str, Enum):
    """Generational direction of an edge."""
    UP = "up"  # Toward an ancestor
    DOWN = "down"  # Toward a descendant
    LATERAL = "lateral"  # Same generation

    def inverted(self) -> Direction:
        if self is Direction.UP:
            return Direction.DOWN
        if self is Direction.DOWN:
            return Direction.UP
        return Direction.LATERAL


_AUNT_UNCLE_KINDS = frozenset({RelationKind.AUNT, RelationKind.UNCLE, RelationKind.AUNT_UNCLE})
_NIECE_NEPHEW_KINDS = frozenset({RelationKind.NIECE, RelationKind.NEPHEW, RelationKind.NIECE_NEPHEW})

_INVERSE_KIND: dict[RelationKind, RelationKind] = {
    RelationKind.PARENT: RelationKind.CHILD,
    RelationKind.CHILD: RelationKind.PARENT,
    RelationKind.GRANDPARENT: RelationKind.GRANDCHILD,
    RelationKind.GRANDCHILD: RelationKind.GRANDPARENT,
    RelationKind.SIBLING: RelationKind.SIBLING,
    RelationKind.SPOUSE: RelationKind.SPOUSE,
    RelationKind.COUSIN: RelationKind.COUSIN,
    RelationKind.AUNT: RelationKind.NIECE_NEPHEW,
    RelationKind.UNCLE: RelationKind.NIECE_NEPHEW,
    RelationKind.AUNT_UNCLE: RelationKind.NIECE_NEPHEW,
    RelationKind.NIECE: RelationKind.AUNT_UNCLE,
    RelationKind.NEPHEW: RelationKind.AUNT_UNCLE,
    RelationKind.NIECE_NEPHEW: RelationKind.AUNT_UNCLE,
    RelationKind.OTHER: RelationKind.OTHER,
}

_DIRECTION: dict[RelationKind, Direction] = {
    RelationKind.PARENT: Direction.UP,
    RelationKind.GRANDPARENT: Direction.UP,
    RelationKind.AUNT: Direction.UP,
    RelationKind.UNCLE: Direction.UP,
    RelationKind.AUNT_UNCLE: Direction.UP,
    RelationKind.CHILD: Direction.DOWN,
    RelationKind.GRANDCHILD: Direction.DOWN,
    RelationKind.NIECE: Direction.DOWN,
    RelationKind.NEPHEW: Direction.DOWN,
    RelationKind.NIECE_NEPHEW: Direction.DOWN,
    RelationKind.SIBLING: Direction.LATERAL,
    RelationKind.SPOUSE: Direction.LATERAL,
    RelationKind.COUSIN: Direction.LATERAL,
}

_GREAT_PREFIX = re.compile(r"^great[-_ ]?")
_SEPARATORS = re.compile(r"[\s-]+")


@dataclass(frozen=True)
class Relation:
    """A parsed relation type.

    ``greats`` is only meaningful for grandparent/grandchild chains.
    ``raw`` holds the original text for ``OTHER`` relations.
    """
    kind: RelationKind
    greats: int = 0
    raw: str | None = None

    @classmethod
    def parse(cls, value: str | Relation) -> Relation:
        """Parse a relation string, falling back to ``OTHER`` for unknown text."""
        if isinstance(value, Relation):
            return value

        text = value.strip().lower()
        rest = text
        greats = 0
        while True:
            stripped = _GREAT_PREFIX.sub("", rest, count=1)
            if stripped == rest:
                break
            greats += 1
            rest = stripped

        if rest in ("grandparent", "grandchild"):
            return cls(RelationKind(rest), greats=greats)

        # "great-" only belongs on grandparent/grandchild chains
        if greats == 0:
            normalized = _SEPARATORS.sub("_", rest)
            try:
                kind = RelationKind(normalized)
            except ValueError:
                kind = None
            if kind is not None and kind is not RelationKind.OTHER:
                return cls(kind)

        return cls(RelationKind.OTHER, raw=value.strip())

    @property
    def value(self) -> str:
        """Canonical string form, e.g. ``great-great-grandparent``."""
        if self.kind is RelationKind.OTHER:
            return self.raw or RelationKind.OTHER.value
        if self.kind in (RelationKind.GRANDPARENT, RelationKind.GRANDCHILD):
            return "great-" * self.greats + self.kind.value
        return self.kind.value

    @property
    def is_known(self) -> bool:
        return self.kind is not RelationKind.OTHER

    @property
    def is_aunt_uncle(self) -> bool:
        return self.kind in _AUNT_UNCLE_KINDS

    @property
    def is_niece_nephew(self) -> bool:
        return self.kind in _NIECE_NEPHEW_KINDS

    def inverse(self) -> Relation:
        """Relation seen from the other end of the fact; unknown types map to themselves."""
        if self.kind is RelationKind.OTHER:
            return self
        return Relation(_INVERSE_KIND[self.kind], greats=self.greats)

    @property
    def direction(self) -> Direction:
        return _DIRECTION.get(self.kind, Direction.LATERAL)

    @property
    def generation_step(self) -> int:
        """Signed generations moved: positive toward ancestors, negative toward descendants."""
        kind = self.kind
        if kind is RelationKind.PARENT:
            return 1
        if kind is RelationKind.CHILD:
            return -1
        if kind is RelationKind.GRANDPARENT:
            return 2 + self.greats
        if kind is RelationKind.GRANDCHILD:
            return -(2 + self.greats)
        if kind in _AUNT_UNCLE_KINDS:
            return 1
        if kind in _NIECE_NEPHEW_KINDS:
            return -1
        return 0

    def __str__(self) -> str:
        return self.value


def inverse_relation(value: str | Relation) -> Relation:
    """Inverse of a relation given as text or Relation."""
    return Relation.parse(value).inverse()


def relation_direction(value: str | Relation) -> Direction:
    """Direction implied by a relation given as text or Relation."""
    return Relation.parse(value).direction
