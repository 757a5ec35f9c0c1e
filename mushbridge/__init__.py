"""MUSH who bridge.

Polls a TinyMUSH-style world over telnet for the online players and their
locations, and serves the result as JSON over HTTP.
"""

__version__ = "0.1.0"
