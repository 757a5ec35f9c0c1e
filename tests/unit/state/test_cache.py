"""Unit tests for the location cache and unresolved queue."""

import pytest

from mushbridge.models.world import Player
from mushbridge.state.cache import LocationCache, UnresolvedQueue, rebuild_queue


def roster_of(*location_ids):
    return tuple(Player(name=f"p{i}", location_id=loc) for i, loc in enumerate(location_ids))


class TestLocationCache:
    """Test LocationCache class."""

    def test_lookup_missing(self):
        """Test looking up an id that was never inserted."""
        cache = LocationCache()

        assert cache.lookup("#1") is None
        assert "#1" not in cache
        assert len(cache) == 0

    def test_insert_and_lookup(self):
        """Test a resolved name can be read back."""
        cache = LocationCache()

        assert cache.insert("#1", "Town Square") is True
        assert cache.lookup("#1") == "Town Square"
        assert "#1" in cache

    def test_insert_is_idempotent(self):
        """Test inserting the same pair twice equals inserting once."""
        once = LocationCache()
        once.insert("#1", "Town Square")

        twice = LocationCache()
        twice.insert("#1", "Town Square")
        assert twice.insert("#1", "Town Square") is False

        assert dict(twice.snapshot()) == dict(once.snapshot())

    def test_conflicting_insert_keeps_first(self):
        """Test a different name for a cached id does not overwrite it."""
        cache = LocationCache()
        cache.insert("#1", "Town Square")

        assert cache.insert("#1", "Somewhere Else") is False
        assert cache.lookup("#1") == "Town Square"

    def test_snapshot_is_read_only_copy(self):
        """Test snapshots are isolated from later inserts."""
        cache = LocationCache()
        cache.insert("#1", "Town Square")
        snapshot = cache.snapshot()

        cache.insert("#2", "Docks")

        assert dict(snapshot) == {"#1": "Town Square"}
        with pytest.raises(TypeError):
            snapshot["#3"] = "Nope"


class TestRebuildQueue:
    """Test rebuild_queue function."""

    def test_first_seen_order_without_duplicates(self):
        """Test ids are de-duplicated in first-seen order."""
        pending = rebuild_queue(roster_of("#3", "#1", "#3", "#2", "#1"), LocationCache())

        assert pending == ["#3", "#1", "#2"]

    def test_cached_ids_excluded(self):
        """Test ids already resolved are left out."""
        cache = LocationCache()
        cache.insert("#1", "Town Square")

        pending = rebuild_queue(roster_of("#1", "#2"), cache)

        assert pending == ["#2"]

    def test_queued_ids_are_pending_and_unique(self):
        """Test every queued id is in the roster, absent from the cache, and unique."""
        cache = LocationCache()
        cache.insert("#2", "Docks")
        roster = roster_of("#1", "#2", "#3", "#1", "#4", "#2")

        pending = rebuild_queue(roster, cache)

        roster_ids = {p.location_id for p in roster}
        assert all(loc in roster_ids for loc in pending)
        assert all(loc not in cache for loc in pending)
        assert len(pending) == len(set(pending))
        assert pending == ["#1", "#3", "#4"]

    def test_empty_roster(self):
        assert rebuild_queue((), LocationCache()) == []


class TestUnresolvedQueue:
    """Test UnresolvedQueue class."""

    def test_empty_queue(self):
        queue = UnresolvedQueue()

        assert queue.head is None
        assert not queue
        assert len(queue) == 0

    def test_rebuild_replaces_contents(self):
        """Test rebuilding discards the previous queue entirely."""
        queue = UnresolvedQueue()
        queue.rebuild(roster_of("#1", "#2"), LocationCache())

        queue.rebuild(roster_of("#5"), LocationCache())

        assert list(queue) == ["#5"]

    def test_pop_head(self):
        """Test resolving the head removes it."""
        queue = UnresolvedQueue()
        queue.rebuild(roster_of("#1", "#2"), LocationCache())

        assert queue.pop_if_head("#1") is True
        assert queue.head == "#2"

    def test_pop_non_head_is_ignored(self):
        """Test a reply for a different id leaves the queue untouched."""
        queue = UnresolvedQueue()
        queue.rebuild(roster_of("#1", "#2"), LocationCache())

        assert queue.pop_if_head("#2") is False
        assert list(queue) == ["#1", "#2"]

    def test_pop_empty(self):
        assert UnresolvedQueue().pop_if_head("#1") is False
