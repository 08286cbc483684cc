"""Tests for ancestor enumeration and the ancestor cache."""
from __future__ import annotations

import pytest

from kinship_engine.config import KinshipConfig
from kinship_engine.exceptions import StoreUnavailable
from kinship_engine.models import AncestorRecord, Person, RelationshipFact
from kinship_engine.relatives import AncestorCache, enumerate_ancestors, parent_provider_from_facts
from kinship_engine.stores import InMemoryAncestorCacheStore, InMemoryFactStore, InMemoryProfileStore


def fact(subject: str, obj: str, relation: str) -> RelationshipFact:
    return RelationshipFact(subject_id=subject, object_id=obj, relation=relation)


def provider(parents: dict[str, list[str]]):
    return lambda person_id: parents.get(person_id, [])


FAST = KinshipConfig(store_retry_attempts=3, store_retry_max_wait=0.01)


class TestEnumerateAncestors:
    """Tests for enumerate_ancestors."""

    def test_chain(self):
        """Test depths and paths along a single line."""
        records = enumerate_ancestors("A", 8, provider({"A": ["B"], "B": ["C"], "C": ["D"]}))

        assert [(r.ancestor_id, r.depth, r.path) for r in records] == [
            ("B", 1, ()),
            ("C", 2, ("B",)),
            ("D", 3, ("B", "C")),
        ]
        assert all(r.descendant_id == "A" for r in records)

    def test_max_depth(self):
        """Test ancestors beyond max_depth are left out."""
        records = enumerate_ancestors("A", 2, provider({"A": ["B"], "B": ["C"], "C": ["D"]}))
        assert [r.ancestor_id for r in records] == ["B", "C"]

    def test_shared_grandparent_recorded_once(self):
        """Test pedigree collapse keeps one record at the shallowest depth."""
        parents = {"A": ["M", "F"], "M": ["G"], "F": ["G", "H"], "H": ["G"]}
        records = enumerate_ancestors("A", 8, provider(parents))

        by_id = {r.ancestor_id: r for r in records}
        assert len(records) == len(by_id) == 4
        assert by_id["G"].depth == 2
        assert by_id["G"].path == ("M",)
        assert by_id["H"].depth == 2

    def test_two_person_cycle(self):
        """Test A parentOf B and B parentOf A terminates."""
        records = enumerate_ancestors("A", 8, provider({"A": ["B"], "B": ["A"]}))
        assert [(r.ancestor_id, r.depth) for r in records] == [("B", 1)]

    def test_cycle_above_subject(self):
        """Test a cycle among ancestors is pruned with partial results."""
        parents = {"S": ["A"], "A": ["B"], "B": ["A"]}
        records = enumerate_ancestors("S", 8, provider(parents))
        assert [(r.ancestor_id, r.depth) for r in records] == [("A", 1), ("B", 2)]

    def test_own_parent(self):
        """Test a person listed as their own parent yields nothing."""
        assert enumerate_ancestors("A", 8, provider({"A": ["A"]})) == []

    def test_no_parents(self):
        """Test a root person has no ancestors."""
        assert enumerate_ancestors("A", 8, provider({})) == []

    def test_invalid_depth(self):
        """Test max_depth below one is rejected."""
        with pytest.raises(ValueError):
            enumerate_ancestors("A", 0, provider({}))


class TestParentProviderFromFacts:
    """Tests for parent_provider_from_facts."""

    def test_parent_and_child_facts(self):
        """Test both fact directions produce parent links."""
        get_parents = parent_provider_from_facts([
            fact("A", "M", "parent"),
            fact("F", "A", "child"),
            fact("A", "S", "sibling"),
            fact("A", "M", "parent"),
        ])

        assert get_parents("A") == ["M", "F"]
        assert get_parents("M") == []

    def test_fact_store_agrees(self):
        """Test the in-memory fact store derives the same parents."""
        facts = [fact("A", "M", "parent"), fact("F", "A", "child")]
        assert InMemoryFactStore(facts).parents_of("A") == parent_provider_from_facts(facts)("A")


class FlakyCacheStore(InMemoryAncestorCacheStore):
    """Raises StoreUnavailable for the first ``failures`` calls."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.calls = 0

    def get(self, user_id, max_depth=None):
        self.calls += 1
        if self.calls <= self.failures:
            raise StoreUnavailable("ancestor_cache", "connection reset")
        return super().get(user_id, max_depth)

    def replace(self, user_id, records):
        if self.failures < 0:
            raise StoreUnavailable("ancestor_cache", "read only")
        return super().replace(user_id, records)


@pytest.fixture()
def facts():
    return InMemoryFactStore([
        fact("A", "B", "parent"),
        fact("B", "C", "parent"),
    ])


class TestAncestorCache:
    """Tests for AncestorCache."""

    @pytest.mark.asyncio
    async def test_refresh_writes_rows(self, facts):
        """Test refresh stores every ancestor."""
        store = InMemoryAncestorCacheStore()
        cache = AncestorCache(facts, store, config=FAST)

        assert await cache.refresh("A") == 2
        rows = store.get("A")
        assert [(r.ancestor_id, r.depth) for r in rows] == [("B", 1), ("C", 2)]
        assert rows[1].to_row()["path"] == ["B"]

    @pytest.mark.asyncio
    async def test_refresh_replaces_stale_rows(self):
        """Test refresh deletes rows even when nothing replaces them."""
        store = InMemoryAncestorCacheStore()
        store.replace("A", [AncestorRecord(descendant_id="A", ancestor_id="OLD", depth=1)])
        cache = AncestorCache(InMemoryFactStore(), store, config=FAST)

        assert await cache.refresh("A") == 0
        assert store.get("A") == []

    @pytest.mark.asyncio
    async def test_get_cached_hit(self, facts):
        """Test cached rows are returned filtered by depth."""
        store = InMemoryAncestorCacheStore()
        cache = AncestorCache(facts, store, config=FAST)
        await cache.refresh("A")

        rows = await cache.get_cached("A", max_depth=1)
        assert [r.ancestor_id for r in rows] == ["B"]

    @pytest.mark.asyncio
    async def test_get_cached_miss_populates_in_background(self, facts):
        """Test a miss returns computed rows and fills the cache later."""
        store = InMemoryAncestorCacheStore()
        cache = AncestorCache(facts, store, config=FAST)

        rows = await cache.get_cached("A")
        assert [r.ancestor_id for r in rows] == ["B", "C"]

        await cache.wait_for_background()
        assert [r.ancestor_id for r in store.get("A")] == ["B", "C"]

    @pytest.mark.asyncio
    async def test_background_failure_is_not_raised(self, facts):
        """Test a failed background refresh does not reach the caller."""
        store = FlakyCacheStore(failures=-1)
        cache = AncestorCache(facts, store, config=KinshipConfig(store_retry_attempts=1))

        rows = await cache.get_cached("A")
        await cache.wait_for_background()

        assert [r.ancestor_id for r in rows] == ["B", "C"]
        assert store.get("A") == []

    @pytest.mark.asyncio
    async def test_retries_unavailable_store(self, facts):
        """Test StoreUnavailable is retried."""
        store = FlakyCacheStore(failures=2)
        cache = AncestorCache(facts, store, config=FAST)
        await cache.refresh("A")

        rows = await cache.get_cached("A")
        assert len(rows) == 2
        assert store.calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, facts):
        """Test StoreUnavailable propagates once attempts run out."""
        store = FlakyCacheStore(failures=10)
        cache = AncestorCache(facts, store, config=FAST)

        with pytest.raises(StoreUnavailable):
            await cache.get_cached("A")
        assert store.calls == 3

    @pytest.mark.asyncio
    async def test_refresh_many(self, facts):
        """Test bulk refresh reports counts per person."""
        store = InMemoryAncestorCacheStore()
        cache = AncestorCache(facts, store, config=FAST)

        counts = await cache.refresh_many(["A", "B", "C", "A"])

        assert counts == {"A": 2, "B": 1, "C": 0}
        assert [r.ancestor_id for r in store.get("B")] == ["C"]

    @pytest.mark.asyncio
    async def test_miss_refreshes_at_requested_depth(self):
        """Test the background refresh after a miss keeps the deeper rows."""
        chain = InMemoryFactStore([
            fact("A", "B", "parent"),
            fact("B", "C", "parent"),
            fact("C", "D", "parent"),
            fact("D", "E", "parent"),
        ])
        store = InMemoryAncestorCacheStore()
        shallow = KinshipConfig(ancestor_max_depth=2, store_retry_attempts=3, store_retry_max_wait=0.01)
        cache = AncestorCache(chain, store, config=shallow)

        rows = await cache.get_cached("A", max_depth=4)
        await cache.wait_for_background()

        assert [r.ancestor_id for r in rows] == ["B", "C", "D", "E"]
        assert [r.ancestor_id for r in store.get("A")] == ["B", "C", "D", "E"]
        hit = await cache.get_cached("A", max_depth=4)
        assert [r.ancestor_id for r in hit] == ["B", "C", "D", "E"]

    @pytest.mark.asyncio
    async def test_zero_depth_rejected(self, facts):
        """Test a depth of 0 is rejected instead of falling back to the default."""
        cache = AncestorCache(facts, InMemoryAncestorCacheStore(), config=FAST)

        with pytest.raises(ValueError):
            await cache.get_cached("A", max_depth=0)
        with pytest.raises(ValueError):
            await cache.refresh("A", max_depth=0)
        with pytest.raises(ValueError):
            await cache.compute("A", max_depth=0)


@pytest.fixture()
def cousin_facts():
    """S and C are first cousins through G; G's parent is GG."""
    return InMemoryFactStore([
        fact("P1", "G", "parent"),
        fact("P2", "G", "parent"),
        fact("S", "P1", "parent"),
        fact("C", "P2", "parent"),
        fact("G", "GG", "parent"),
    ])


class TestSharedAncestors:
    """Tests for AncestorCache.find_shared_ancestors and get_with_profiles."""

    @pytest.mark.asyncio
    async def test_common_ancestors_by_closeness(self, cousin_facts):
        """Test both depths are reported and the closest ancestor comes first."""
        cache = AncestorCache(cousin_facts, InMemoryAncestorCacheStore(), config=FAST)

        shared = await cache.find_shared_ancestors("S", "C")
        await cache.wait_for_background()

        assert [(s.ancestor_id, s.first_depth, s.second_depth, s.closeness) for s in shared] == [
            ("G", 2, 2, 4),
            ("GG", 3, 3, 6),
        ]
        assert shared[0].name == "Unknown"

    @pytest.mark.asyncio
    async def test_uneven_depths(self, cousin_facts):
        """Test depths are kept per side when the generations differ."""
        cache = AncestorCache(cousin_facts, InMemoryAncestorCacheStore(), config=FAST)
        await cache.refresh_many(["S", "P2"])

        shared = await cache.find_shared_ancestors("S", "P2")

        assert [(s.ancestor_id, s.first_depth, s.second_depth) for s in shared] == [
            ("G", 2, 1),
            ("GG", 3, 2),
        ]

    @pytest.mark.asyncio
    async def test_max_depth_limits_both_sides(self, cousin_facts):
        """Test ancestors beyond max_depth on either side are left out."""
        cache = AncestorCache(cousin_facts, InMemoryAncestorCacheStore(), config=FAST)

        shared = await cache.find_shared_ancestors("S", "C", max_depth=2)
        await cache.wait_for_background()

        assert [s.ancestor_id for s in shared] == ["G"]

    @pytest.mark.asyncio
    async def test_nothing_shared(self, cousin_facts):
        """Test unrelated people share nothing."""
        cache = AncestorCache(cousin_facts, InMemoryAncestorCacheStore(), config=FAST)

        assert await cache.find_shared_ancestors("S", "nobody") == []
        await cache.wait_for_background()

    @pytest.mark.asyncio
    async def test_profiles_attached(self, cousin_facts):
        """Test ancestor profiles come from the profile store."""
        profiles = InMemoryProfileStore([Person(id="G", first_name="Grace", last_name="Hale")])
        cache = AncestorCache(cousin_facts, InMemoryAncestorCacheStore(), config=FAST, profile_store=profiles)
        await cache.refresh_many(["S", "C"])

        shared = await cache.find_shared_ancestors("S", "C")
        assert shared[0].name == "Grace Hale"
        assert shared[0].to_dict()["name"] == "Grace Hale"
        assert shared[1].ancestor is None

        pairs = await cache.get_with_profiles("S")
        assert [(r.ancestor_id, p.display_name if p else None) for r, p in pairs] == [
            ("P1", None),
            ("G", "Grace Hale"),
            ("GG", None),
        ]
