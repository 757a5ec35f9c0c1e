"""HTTP API for the MUSH bridge."""

from .server import SnapshotServer

__all__ = ["SnapshotServer"]
