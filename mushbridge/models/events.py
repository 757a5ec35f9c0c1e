"""Events consumed by the bridge's processing loop."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TickEvent:
    """The polling scheduler fired."""


@dataclass(frozen=True)
class MessageEvent:
    """A burst of text arrived from the MUSH."""

    text: str
    connection_id: int


@dataclass(frozen=True)
class TransportErrorEvent:
    """The telnet connection failed or was closed by the remote end."""

    error: Exception
    connection_id: int


BridgeEvent = TickEvent | MessageEvent | TransportErrorEvent
