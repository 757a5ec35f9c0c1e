"""Data models for the MUSH bridge."""

from .events import BridgeEvent, MessageEvent, TickEvent, TransportErrorEvent
from .world import Player, RosterSnapshot

__all__ = [
    "BridgeEvent",
    "MessageEvent",
    "Player",
    "RosterSnapshot",
    "TickEvent",
    "TransportErrorEvent",
]
