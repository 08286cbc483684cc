"""Shared-ancestor matching of potential relatives."""
from __future__ import annotations

import asyncio
from dataclasses import replace

from ..config import CONFIG, KinshipConfig
from ..graph.classifier import descriptor_from_depths
from ..logging import get_logger
from ..models.ancestry import AncestorRecord, MatchCandidate
from ..retry import call_store
from ..stores.base import (
    AncestorCacheStore,
    ConnectionRequestStore,
    PreferenceStore,
    ProfileStore,
    RelationshipFactStore,
)
from .cache import AncestorCache

logger = get_logger(__name__)


class RelativeMatcher:
    """Finds people who share a cached ancestor with a subject.

    Only people who explicitly opted in are ever returned. People already
    linked to the subject by a verified fact, or by a pending or accepted
    connection request, are left out, and so are the subject's own ancestors.
    With a profile store, candidates carry display profiles for the
    candidate and the shared ancestor.
    """

    def __init__(
        self,
        ancestor_cache: AncestorCache,
        cache_store: AncestorCacheStore,
        fact_store: RelationshipFactStore,
        preference_store: PreferenceStore,
        request_store: ConnectionRequestStore,
        config: KinshipConfig | None = None,
        profile_store: ProfileStore | None = None,
    ) -> None:
        self.ancestor_cache = ancestor_cache
        self.cache_store = cache_store
        self.fact_store = fact_store
        self.preference_store = preference_store
        self.request_store = request_store
        self.config = config or CONFIG
        self.profile_store = profile_store

    async def find_potential_relatives(
        self,
        subject_id: str,
        max_depth: int | None = None,
        limit: int | None = None,
    ) -> list[MatchCandidate]:
        """Rank candidates by closeness through their nearest shared ancestor.

        Args:
            subject_id: Person to find relatives for
            max_depth: Deepest ancestor considered, on both sides
            limit: Maximum number of candidates returned

        Returns:
            Candidates sorted by (closeness, candidate_id); empty when
            nobody qualifies
        """
        max_depth = self.config.match_max_depth if max_depth is None else max_depth
        limit = self.config.match_limit if limit is None else limit
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        subject_rows = await self.ancestor_cache.get_cached(subject_id, max_depth)
        subject_depths: dict[str, int] = {}
        for row in subject_rows:
            if row.depth <= max_depth and row.ancestor_id not in subject_depths:
                subject_depths[row.ancestor_id] = row.depth
        if not subject_depths:
            logger.info("relatives_matched", subject_id=subject_id, candidates=0)
            return []

        population = await call_store(
            self.cache_store.find_sharing,
            list(subject_depths),
            subject_id,
            max_depth,
            config=self.config,
        )
        candidate_ids = list(dict.fromkeys(r.descendant_id for r in population if r.descendant_id != subject_id))
        if not candidate_ids:
            logger.info("relatives_matched", subject_id=subject_id, candidates=0)
            return []

        opted_in, connected, requested = await asyncio.gather(
            call_store(self.preference_store.opted_in, candidate_ids, config=self.config),
            call_store(self.fact_store.connected_ids, subject_id, config=self.config),
            call_store(self.request_store.active_counterparts, subject_id, config=self.config),
        )

        best: dict[str, AncestorRecord] = {}
        for row in population:
            cid = row.descendant_id
            if cid == subject_id or cid in subject_depths:
                continue
            if cid not in opted_in or cid in connected or cid in requested:
                continue
            if row.ancestor_id not in subject_depths or row.depth > max_depth:
                continue
            current = best.get(cid)
            # Closest pairing wins; exact ties keep the first one seen
            if current is None or _rank(subject_depths, row) < _rank(subject_depths, current):
                best[cid] = row

        candidates = [
            MatchCandidate(
                subject_id=subject_id,
                candidate_id=cid,
                shared_ancestor_id=row.ancestor_id,
                subject_depth=subject_depths[row.ancestor_id],
                candidate_depth=row.depth,
                relationship=descriptor_from_depths(subject_depths[row.ancestor_id], row.depth),
            )
            for cid, row in best.items()
        ]
        candidates.sort(key=lambda c: (c.closeness, c.candidate_id))
        result = candidates[:limit]
        if result and self.profile_store is not None:
            result = await self._with_profiles(result)

        logger.info(
            "relatives_matched",
            subject_id=subject_id,
            candidates=len(result),
            considered=len(candidate_ids),
        )
        return result

    async def _with_profiles(self, candidates: list[MatchCandidate]) -> list[MatchCandidate]:
        ids = {c.candidate_id for c in candidates} | {c.shared_ancestor_id for c in candidates}
        profiles = await call_store(self.profile_store.get_many, sorted(ids), config=self.config)
        return [
            replace(
                c,
                candidate=profiles.get(c.candidate_id),
                shared_ancestor=profiles.get(c.shared_ancestor_id),
            )
            for c in candidates
        ]


def _rank(subject_depths: dict[str, int], row: AncestorRecord) -> tuple[int, int]:
    return subject_depths[row.ancestor_id] + row.depth, row.depth
