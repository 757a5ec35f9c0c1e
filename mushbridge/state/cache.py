"""Location name cache and the queue of ids still waiting for a name.

Room names do not change while the bridge runs, so the cache is
append-only and never expires entries.
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from ..models.world import Player
from ..utils.logging import get_logger


logger = get_logger(__name__)


class LocationCache:
    """Maps location ids to display names."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def lookup(self, location_id: str) -> str | None:
        """Get the display name for an id, or None if it was never resolved."""
        return self._names.get(location_id)

    def insert(self, location_id: str, name: str) -> bool:
        """Record a resolved name.

        A second insert for the same id keeps the first name; a different
        name is logged as a protocol anomaly.

        Returns:
            True if the id was new
        """
        existing = self._names.get(location_id)
        if existing is not None:
            if existing != name:
                logger.warning(
                    "Conflicting name for cached location",
                    location_id=location_id,
                    cached=existing,
                    received=name,
                )
            return False

        self._names[location_id] = name
        return True

    def snapshot(self) -> Mapping[str, str]:
        """Read-only copy of the current mapping."""
        return MappingProxyType(dict(self._names))

    def __contains__(self, location_id: object) -> bool:
        return location_id in self._names

    def __len__(self) -> int:
        return len(self._names)


def rebuild_queue(roster: Iterable[Player], cache: LocationCache) -> list[str]:
    """List the roster's location ids missing from ``cache``.

    Ids are de-duplicated and kept in first-seen order.
    """
    pending: list[str] = []
    seen: set[str] = set()
    for player in roster:
        location_id = player.location_id
        if location_id in seen or location_id in cache:
            continue
        seen.add(location_id)
        pending.append(location_id)
    return pending


class UnresolvedQueue:
    """FIFO of location ids awaiting a name lookup."""

    def __init__(self) -> None:
        self._ids: list[str] = []

    @property
    def head(self) -> str | None:
        """Next id to resolve, or None when empty."""
        return self._ids[0] if self._ids else None

    def rebuild(self, roster: Iterable[Player], cache: LocationCache) -> None:
        """Replace the whole queue from a freshly parsed roster."""
        self._ids = rebuild_queue(roster, cache)

    def pop_if_head(self, location_id: str) -> bool:
        """Drop the head if it is ``location_id``.

        Replies for any other id leave the queue untouched.
        """
        if self._ids and self._ids[0] == location_id:
            self._ids.pop(0)
            return True
        return False

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        return bool(self._ids)
