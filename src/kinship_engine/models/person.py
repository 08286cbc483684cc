"""People, relationship facts and matching preferences."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .relation import Relation

Gender = Literal["male", "female", "unknown"]


class Person(BaseModel):
    """A person node. Display attributes only; no algorithm reads them."""
    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str = ""
    last_name: str = ""
    gender: Gender | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or "Unknown"


class RelationshipFact(BaseModel):
    """A directed fact: ``object_id`` is ``subject_id``'s ``relation``.

    The inverse fact is implied and never stored twice.
    """
    model_config = ConfigDict(frozen=True)

    subject_id: str
    object_id: str
    relation: str = Field(description="parent, child, sibling, spouse, aunt, great-grandparent, ...")

    # Best-effort display attributes for relatives without a full profile
    object_first_name: str | None = None
    object_last_name: str | None = None

    # Unverified facts still shape the graph but do not count as a confirmed connection
    verified: bool = True

    @field_validator("subject_id", "object_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("person ids must be non-empty")
        return value

    @property
    def parsed_relation(self) -> Relation:
        return Relation.parse(self.relation)


class MatchingPreference(BaseModel):
    """Per-person opt-in for relative matching. Absence means opted out."""

    user_id: str
    allow_matching: bool = False
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
