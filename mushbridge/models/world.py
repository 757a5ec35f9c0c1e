"""World data as seen through the who listing.

Players carry the raw location identifier reported by the MUSH. The
identifier is only swapped for a display name when a snapshot is
serialized.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class Player:
    """A connected player and the raw id of the room they are in."""

    name: str
    location_id: str


@dataclass(frozen=True)
class RosterSnapshot:
    """Immutable view of the roster and location names at one instant."""

    players: tuple[Player, ...] = ()
    locations: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def resolve(self, location_id: str) -> str:
        """Return the display name for an id, or the id itself if unresolved."""
        return self.locations.get(location_id, location_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON document served on ``/api``."""
        return {
            "players": [
                {"name": player.name, "location": self.resolve(player.location_id)}
                for player in self.players
            ]
        }
