"""Structured kinship descriptors.

These are pure values with no locale-specific text; turning a descriptor
into words is a presentation concern.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class KinshipCategory(str, Enum):
    DIRECT = "direct"
    EXTENDED = "extended"
    COUSIN = "cousin"
    IN_LAW = "in-law"
    OTHER = "other"


class RelationshipPatternType(str, Enum):
    """Shape of a relation chain, as seen by the classifier."""
    SAME_PERSON = "same-person"
    SINGLE = "single"
    DIRECT_LINE = "direct-line"
    SIBLING_LINE = "sibling-line"
    SPOUSE_LINE = "spouse-line"
    COMPLEX = "complex"
    ANCESTOR_DEPTHS = "ancestor-depths"


class KinshipDescriptor(BaseModel):
    """How the end of a relation chain is related to its start.

    ``generation_delta`` is positive when the relative sits in an older
    generation. ``level`` counts "great-" steps for aunt/uncle and
    niece/nephew chains (0 = plain aunt). ``cousin_degree`` 1 is a first
    cousin; ``removal`` is the generational offset between cousins.
    """
    model_config = ConfigDict(frozen=True)

    category: KinshipCategory
    generation_delta: int = 0
    cousin_degree: int | None = None
    removal: int | None = None
    level: int | None = None

    up_steps: int = 0
    down_steps: int = 0
    degree: int = 0  # Degrees of separation
    pattern: RelationshipPatternType = RelationshipPatternType.SINGLE

    @property
    def is_ancestor(self) -> bool:
        return self.category == KinshipCategory.DIRECT and self.generation_delta > 0

    @property
    def is_descendant(self) -> bool:
        return self.category == KinshipCategory.DIRECT and self.generation_delta < 0

    @property
    def greats(self) -> int:
        """Number of "great-" prefixes on a direct-line relative (0 below great-grandparent)."""
        if self.category != KinshipCategory.DIRECT:
            return 0
        return max(abs(self.generation_delta) - 2, 0)
