"""Kinship classification of relation chains.

Turns the relation chain of a path into a KinshipDescriptor using
generational arithmetic: each relation moves up (toward ancestors), down
(toward descendants) or stays level, and sibling jumps mark the turn at a
common ancestor. Nothing here formats text.

The matcher's ancestor-depth arithmetic lives in ``descriptor_from_depths``.
It is a separate computation and can label the same two people differently
when the fact graph and the ancestor cache diverge.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models.kinship import KinshipCategory, KinshipDescriptor, RelationshipPatternType
from ..models.relation import Relation, RelationKind
from .path_finder import PathResult, PathStep

ChainItem = PathStep | Relation | str


@dataclass(frozen=True)
class RelationshipPattern:
    """Summary of a multi-relation chain."""
    type: RelationshipPatternType
    up_steps: int
    down_steps: int
    has_sibling: bool
    has_spouse: bool
    length: int

    @property
    def steps(self) -> int:
        """Net generations moved; positive ends in an older generation."""
        return self.up_steps - self.down_steps


def relation_chain(chain: PathResult | Iterable[ChainItem]) -> list[Relation]:
    """Normalize a path, its steps, or raw relation strings into Relations.

    Steps without an outgoing relation (the last step of a path) are skipped.
    """
    if isinstance(chain, PathResult):
        return chain.relations

    relations: list[Relation] = []
    for item in chain:
        if isinstance(item, PathStep):
            if item.relation_to_next is not None:
                relations.append(item.relation_to_next)
        else:
            relations.append(Relation.parse(item))
    return relations


def classify(chain: PathResult | Iterable[ChainItem]) -> KinshipDescriptor:
    """Classify a relation chain into a kinship descriptor.

    Args:
        chain: A PathResult, its steps, or relation strings in path order

    Returns:
        KinshipDescriptor; malformed chains degrade to category ``other``
    """
    relations = relation_chain(chain)

    if not relations:
        return KinshipDescriptor(
            category=KinshipCategory.DIRECT,
            generation_delta=0,
            degree=0,
            pattern=RelationshipPatternType.SAME_PERSON,
        )

    if len(relations) == 1:
        return _single(relations[0])

    pattern = analyze_pattern(relations)

    if pattern.type is RelationshipPatternType.DIRECT_LINE:
        return _direct_line(pattern)
    if pattern.type is RelationshipPatternType.SIBLING_LINE:
        return _sibling_line(pattern)
    if pattern.type is RelationshipPatternType.SPOUSE_LINE:
        return _in_law(pattern)
    return _complex(pattern)


def _single(relation: Relation) -> KinshipDescriptor:
    kind = relation.kind
    step = relation.generation_step
    up, down = max(step, 0), max(-step, 0)

    if kind in (RelationKind.PARENT, RelationKind.CHILD, RelationKind.GRANDPARENT, RelationKind.GRANDCHILD):
        return KinshipDescriptor(
            category=KinshipCategory.DIRECT,
            generation_delta=step,
            up_steps=up,
            down_steps=down,
            degree=abs(step),
        )
    if kind in (RelationKind.SIBLING, RelationKind.SPOUSE):
        return KinshipDescriptor(category=KinshipCategory.DIRECT, generation_delta=0, degree=1)
    if relation.is_aunt_uncle or relation.is_niece_nephew:
        return KinshipDescriptor(
            category=KinshipCategory.EXTENDED,
            generation_delta=step,
            level=0,
            up_steps=up,
            down_steps=down,
            degree=1,
        )
    if kind is RelationKind.COUSIN:
        # A bare "cousin" fact does not say which degree
        return KinshipDescriptor(category=KinshipCategory.COUSIN, generation_delta=0, degree=1)
    return KinshipDescriptor(category=KinshipCategory.OTHER, generation_delta=0, degree=1)


def analyze_pattern(relations: list[Relation]) -> RelationshipPattern:
    """Accumulate generational steps and sibling/spouse flags over a chain.

    A sibling-line chain must reduce to one common-ancestor triangle: any
    number of ascents, one sibling jump, then any number of descents.
    Consecutive sibling edges count as one jump. Anything else, or any
    unknown relation type, is COMPLEX.
    """
    up_steps = 0
    down_steps = 0
    has_sibling = False
    has_spouse = False
    has_unknown = False
    triangle = True
    # Set once the chain stops climbing toward the common ancestor
    turned = False
    previous: Relation | None = None

    def jump() -> None:
        nonlocal has_sibling, turned, triangle
        has_sibling = True
        if turned:
            triangle = False
        turned = True

    for relation in relations:
        kind = relation.kind
        step = relation.generation_step

        if not relation.is_known:
            has_unknown = True
        elif kind is RelationKind.SIBLING:
            if previous is None or previous.kind is not RelationKind.SIBLING:
                jump()
        elif kind is RelationKind.SPOUSE:
            has_spouse = True
        elif relation.is_aunt_uncle:
            # Parent's sibling: climb one generation, then jump
            if turned:
                triangle = False
            up_steps += step
            jump()
        elif relation.is_niece_nephew:
            # Sibling's child: jump, then descend one generation
            jump()
            down_steps += -step
        elif step > 0:
            if turned:
                triangle = False
            up_steps += step
        elif step < 0:
            down_steps += -step
            turned = True
        # Cousin edges are level and carry no sibling flag
        previous = relation

    if has_unknown:
        pattern_type = RelationshipPatternType.COMPLEX
    elif has_spouse:
        pattern_type = RelationshipPatternType.SPOUSE_LINE
    elif has_sibling:
        pattern_type = RelationshipPatternType.SIBLING_LINE if triangle else RelationshipPatternType.COMPLEX
    else:
        pattern_type = RelationshipPatternType.DIRECT_LINE

    return RelationshipPattern(
        type=pattern_type,
        up_steps=up_steps,
        down_steps=down_steps,
        has_sibling=has_sibling,
        has_spouse=has_spouse,
        length=len(relations),
    )


def _direct_line(pattern: RelationshipPattern) -> KinshipDescriptor:
    delta = pattern.steps
    common = dict(
        up_steps=pattern.up_steps,
        down_steps=pattern.down_steps,
        pattern=RelationshipPatternType.DIRECT_LINE,
    )
    if delta == 0:
        # Reached only through parent/child round trips or malformed data;
        # true siblings always carry the sibling flag.
        return KinshipDescriptor(category=KinshipCategory.DIRECT, generation_delta=0, degree=1, **common)
    return KinshipDescriptor(
        category=KinshipCategory.DIRECT,
        generation_delta=delta,
        degree=abs(delta),
        **common,
    )


def _sibling_line(pattern: RelationshipPattern) -> KinshipDescriptor:
    up, down = pattern.up_steps, pattern.down_steps
    common = dict(up_steps=up, down_steps=down, pattern=RelationshipPatternType.SIBLING_LINE)

    if up > 0 and down == 0:
        level = up - 1  # 0 = aunt/uncle, 1 = great-aunt/uncle, ...
        return KinshipDescriptor(
            category=KinshipCategory.EXTENDED,
            generation_delta=up,
            level=level,
            degree=level + 2,
            **common,
        )

    if up == 0 and down > 0:
        level = down - 1
        return KinshipDescriptor(
            category=KinshipCategory.EXTENDED,
            generation_delta=-down,
            level=level,
            degree=level + 2,
            **common,
        )

    if up > 0 and down > 0:
        cousin_degree = min(up, down)
        removal = abs(up - down)
        return KinshipDescriptor(
            category=KinshipCategory.COUSIN,
            generation_delta=up - down,
            cousin_degree=cousin_degree,
            removal=removal,
            degree=cousin_degree + removal + 1,
            **common,
        )

    # Sibling jumps with no generational movement
    return KinshipDescriptor(category=KinshipCategory.DIRECT, generation_delta=0, degree=1, **common)


def _in_law(pattern: RelationshipPattern) -> KinshipDescriptor:
    # Approximation: which side of the marriage each step took is not tracked
    return KinshipDescriptor(
        category=KinshipCategory.IN_LAW,
        generation_delta=pattern.steps,
        up_steps=pattern.up_steps,
        down_steps=pattern.down_steps,
        degree=pattern.up_steps + pattern.down_steps + 1,
        pattern=RelationshipPatternType.SPOUSE_LINE,
    )


def _complex(pattern: RelationshipPattern) -> KinshipDescriptor:
    return KinshipDescriptor(
        category=KinshipCategory.OTHER,
        generation_delta=pattern.length,
        up_steps=pattern.up_steps,
        down_steps=pattern.down_steps,
        degree=pattern.length,
        pattern=RelationshipPatternType.COMPLEX,
    )


def descriptor_from_depths(subject_depth: int, candidate_depth: int) -> KinshipDescriptor:
    """Kinship implied by two people's depths to a shared ancestor.

    Equal depths: 1 is siblings, ``d`` > 1 is (d-1)th cousins. Unequal
    depths: cousin degree is the smaller depth and removal the difference.

    Args:
        subject_depth: Subject's generations up to the shared ancestor
        candidate_depth: Candidate's generations up to the shared ancestor
    """
    if subject_depth < 1 or candidate_depth < 1:
        raise ValueError("ancestor depths must be >= 1")

    common = dict(
        up_steps=subject_depth,
        down_steps=candidate_depth,
        pattern=RelationshipPatternType.ANCESTOR_DEPTHS,
    )

    if subject_depth == candidate_depth:
        if subject_depth == 1:
            return KinshipDescriptor(category=KinshipCategory.DIRECT, generation_delta=0, degree=1, **common)
        cousin_degree = subject_depth - 1
        return KinshipDescriptor(
            category=KinshipCategory.COUSIN,
            generation_delta=0,
            cousin_degree=cousin_degree,
            removal=0,
            degree=cousin_degree + 1,
            **common,
        )

    cousin_degree = min(subject_depth, candidate_depth)
    removal = abs(subject_depth - candidate_depth)
    return KinshipDescriptor(
        category=KinshipCategory.COUSIN,
        generation_delta=subject_depth - candidate_depth,
        cousin_degree=cousin_degree,
        removal=removal,
        degree=cousin_degree + removal + 1,
        **common,
    )
