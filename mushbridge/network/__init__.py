"""Network layer for the MUSH bridge."""

from .connection import TelnetTransport, TransportError
from .parsers import (
    WHO_COMMAND,
    ParseError,
    location_query,
    parse_location,
    parse_roster,
)

__all__ = [
    "ParseError",
    "TelnetTransport",
    "TransportError",
    "WHO_COMMAND",
    "location_query",
    "parse_location",
    "parse_roster",
]
