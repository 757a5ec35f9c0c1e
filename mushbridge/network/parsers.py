"""Parsers for MUSH command output.

The bridge only ever issues two kinds of query: ``WHO`` and a say-command
that evaluates ``name()`` on a location id. These functions turn the text
the MUSH sends back into structured data.
"""

from ..models.world import Player


WHO_COMMAND = "who"

ROSTER_HEADER_PREFIX = "Player Name"
ROSTER_FOOTER_MARKER = "logged in"
ROSTER_FIELD_COUNT = 6
ROSTER_NAME_FIELD = 0
ROSTER_LOCATION_FIELD = 3

LOCATION_QUOTE = '"'
LOCATION_PART_COUNT = 4


class ParseError(ValueError):
    """MUSH output did not have the expected shape."""


def location_query(location_id: str) -> str:
    """Build the command that makes the MUSH say a location's name.

    The MUSH echoes it back as ``You say, "<id>"<name>"``.
    """
    return f'"{location_id}"[name({location_id})]'


def parse_roster(text: str) -> tuple[Player, ...]:
    """Parse a WHO listing into players.

    The listing must open with the ``Player Name`` column header and close
    with the ``... logged in`` summary line. Rows between them that do not
    split into exactly six fields are skipped rather than failing the parse.

    Raises:
        ParseError: header or footer is missing
    """
    lines = text.replace("\r\n", "\n").rstrip("\n").split("\n")
    if len(lines) < 2:
        raise ParseError(f"Not enough who lines: {len(lines)}")

    if not lines[0].startswith(ROSTER_HEADER_PREFIX):
        raise ParseError(f"Who does not start right: {lines[0]!r}")

    if ROSTER_FOOTER_MARKER not in lines[-1]:
        raise ParseError(f"Who does not end right: {lines[-1]!r}")

    players = []
    for line in lines[1:-1]:
        fields = line.split()
        if len(fields) != ROSTER_FIELD_COUNT:
            continue
        players.append(
            Player(
                name=fields[ROSTER_NAME_FIELD],
                location_id=fields[ROSTER_LOCATION_FIELD],
            )
        )
    return tuple(players)


def parse_location(text: str) -> tuple[str, str]:
    """Parse the echo of a location query into ``(location_id, name)``.

    Raises:
        ParseError: the text does not split into exactly four quote-delimited parts
    """
    parts = text.strip().split(LOCATION_QUOTE)
    if len(parts) != LOCATION_PART_COUNT:
        raise ParseError(
            f"Wrong number of say parts: expected {LOCATION_PART_COUNT}, got {len(parts)}"
        )
    return parts[1], parts[2]
