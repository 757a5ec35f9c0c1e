"""Session state for the MUSH bridge."""

from .cache import LocationCache, UnresolvedQueue, rebuild_queue
from .machine import ReconnectBackoff, SessionState, SessionStateMachine

__all__ = [
    "LocationCache",
    "ReconnectBackoff",
    "SessionState",
    "SessionStateMachine",
    "UnresolvedQueue",
    "rebuild_queue",
]
