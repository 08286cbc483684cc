"""Derived ancestor cache: refresh, read-through and background refresh."""
from __future__ import annotations

import asyncio
from collections.abc import Iterable

from ..config import CONFIG, KinshipConfig
from ..logging import get_logger
from ..models.ancestry import AncestorRecord, SharedAncestor
from ..models.person import Person
from ..retry import call_store
from ..stores.base import AncestorCacheStore, ProfileStore, RelationshipFactStore
from .ancestors import enumerate_ancestors

logger = get_logger(__name__)


class AncestorCache:
    """Keeps each person's ancestor rows in an AncestorCacheStore.

    Rows are always re-derivable from the facts, so a refresh recomputes
    everything and replaces the person's rows in one store call. Concurrent
    refreshes for the same person are last-writer-wins.

    Example:
        cache = AncestorCache(fact_store, cache_store)
        await cache.refresh("alice")
        rows = await cache.get_cached("alice", max_depth=4)
    """

    def __init__(
        self,
        fact_store: RelationshipFactStore,
        cache_store: AncestorCacheStore,
        config: KinshipConfig | None = None,
        profile_store: ProfileStore | None = None,
    ) -> None:
        self.fact_store = fact_store
        self.cache_store = cache_store
        self.config = config or CONFIG
        self.profile_store = profile_store
        self._background: set[asyncio.Task[int]] = set()

    def _depth(self, max_depth: int | None) -> int:
        return self.config.ancestor_max_depth if max_depth is None else max_depth

    async def compute(self, person_id: str, max_depth: int | None = None) -> list[AncestorRecord]:
        """Enumerate ancestors from the facts without touching the cache."""
        return await call_store(
            enumerate_ancestors,
            person_id,
            self._depth(max_depth),
            self.fact_store.parents_of,
            config=self.config,
        )

    async def refresh(self, person_id: str, max_depth: int | None = None) -> int:
        """Recompute and replace every cached row for ``person_id``.

        Returns:
            Number of ancestors written; 0 clears the person's rows
        """
        records = await self.compute(person_id, max_depth)
        written = await call_store(self.cache_store.replace, person_id, records, config=self.config)
        logger.info("ancestor_cache_refreshed", person_id=person_id, ancestors=written)
        return written

    async def refresh_many(self, person_ids: Iterable[str], max_depth: int | None = None) -> dict[str, int]:
        """Refresh several people, e.g. everyone touched by a fact change."""
        ids = list(dict.fromkeys(person_ids))
        counts = await asyncio.gather(*(self.refresh(pid, max_depth) for pid in ids))
        return dict(zip(ids, counts))

    async def get_cached(self, person_id: str, max_depth: int | None = None) -> list[AncestorRecord]:
        """Cached ancestors up to ``max_depth``, computing on a miss.

        A miss returns freshly computed rows and schedules a refresh at the
        same depth in the background; the caller does not wait for it.
        """
        depth = self._depth(max_depth)
        if depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {depth}")
        rows = await call_store(self.cache_store.get, person_id, depth, config=self.config)
        if rows:
            return rows

        logger.debug("ancestor_cache_miss", person_id=person_id, max_depth=depth)
        computed = await self.compute(person_id, depth)
        self._schedule_refresh(person_id, depth)
        return computed

    async def get_with_profiles(
        self,
        person_id: str,
        max_depth: int | None = None,
    ) -> list[tuple[AncestorRecord, Person | None]]:
        """Cached ancestors paired with their display profile, if any."""
        rows = await self.get_cached(person_id, max_depth)
        profiles = await self._profiles(r.ancestor_id for r in rows)
        return [(r, profiles.get(r.ancestor_id)) for r in rows]

    async def find_shared_ancestors(
        self,
        first_id: str,
        second_id: str,
        max_depth: int | None = None,
    ) -> list[SharedAncestor]:
        """Ancestors ``first_id`` and ``second_id`` have in common.

        Returns:
            One entry per common ancestor, sorted by (closeness, ancestor_id);
            empty when the two share nobody within ``max_depth``
        """
        first_rows, second_rows = await asyncio.gather(
            self.get_cached(first_id, max_depth),
            self.get_cached(second_id, max_depth),
        )
        second_depths = {r.ancestor_id: r.depth for r in second_rows}
        shared = [
            (r.ancestor_id, r.depth, second_depths[r.ancestor_id])
            for r in first_rows
            if r.ancestor_id in second_depths
        ]
        profiles = await self._profiles(aid for aid, _, _ in shared)
        result = [
            SharedAncestor(
                ancestor_id=aid,
                first_depth=first_depth,
                second_depth=second_depth,
                ancestor=profiles.get(aid),
            )
            for aid, first_depth, second_depth in shared
        ]
        result.sort(key=lambda s: (s.closeness, s.ancestor_id))
        return result

    async def _profiles(self, person_ids: Iterable[str]) -> dict[str, Person]:
        ids = list(dict.fromkeys(person_ids))
        if self.profile_store is None or not ids:
            return {}
        return await call_store(self.profile_store.get_many, ids, config=self.config)

    def _schedule_refresh(self, person_id: str, max_depth: int) -> None:
        task = asyncio.create_task(self.refresh(person_id, max_depth))
        self._background.add(task)

        def _done(t: asyncio.Task[int]) -> None:
            self._background.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.warning("background_refresh_failed", person_id=person_id, error=str(exc))

        task.add_done_callback(_done)

    async def wait_for_background(self) -> None:
        """Wait for scheduled refreshes; failures are already logged."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
