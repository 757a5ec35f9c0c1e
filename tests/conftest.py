"""Pytest configuration and fixtures for MUSH bridge tests."""

import asyncio
from types import SimpleNamespace

import pytest

from mushbridge.config.models import (
    APIConfig,
    MushConfig,
    PollingConfig,
    ReconnectConfig,
    Settings,
)


WHO_HEADER = "Player Name        On For Idle  Room    Cmds  Host"


@pytest.fixture
def who_text():
    """A WHO listing with two well-formed rows."""
    return (
        f"{WHO_HEADER}\n"
        "Alice             00:12   1m  #123      45  localhost\n"
        "Bob               01:02   0s  #456      12  localhost\n"
        "2 Players logged in, 5 record, no maximum.\n"
    )


@pytest.fixture
def who_text_shared_room():
    """A WHO listing where two players share a room."""
    return (
        f"{WHO_HEADER}\n"
        "Alice             00:12   1m  #123      45  localhost\n"
        "Bob               01:02   0s  #456      12  localhost\n"
        "Carol             00:01   5s  #123       3  localhost\n"
        "3 Players logged in, 5 record, no maximum.\n"
    )


@pytest.fixture
def settings():
    """Settings pointing at a fake MUSH with backoff disabled."""
    return Settings(
        mush=MushConfig(host="mush.example.com", port=4201, connect_command="connect Bot pw"),
        api=APIConfig(host="127.0.0.1", port=0),
        polling=PollingConfig(interval=30.0),
        reconnect=ReconnectConfig(enabled=False),
    )


class FakeTransport:
    """Stands in for TelnetTransport and records what the bridge does with it."""

    instances: list["FakeTransport"] = []

    def __init__(self, connection_id, host, port, on_message, on_error, **kwargs):
        self.connection_id = connection_id
        self.host = host
        self.port = port
        self.on_message = on_message
        self.on_error = on_error
        self.options = kwargs
        self.sent: list[str] = []
        self.started = False
        self.closed = False
        FakeTransport.instances.append(self)

    def start(self):
        self.started = True

    def send(self, line):
        self.sent.append(line)

    async def close(self):
        self.closed = True

    async def deliver(self, text):
        await self.on_message(text, self.connection_id)

    async def fail(self, error):
        await self.on_error(error, self.connection_id)


@pytest.fixture
def fake_transport_factory():
    """Factory building FakeTransport instances; reset per test."""
    FakeTransport.instances = []
    return FakeTransport


class FakeTelnetReader:
    """Reader yielding scripted chunks; blocks when the script runs out."""

    def __init__(self):
        self._chunks: asyncio.Queue[str] = asyncio.Queue()

    def feed(self, chunk: str) -> None:
        self._chunks.put_nowait(chunk)

    def feed_eof(self) -> None:
        self._chunks.put_nowait("")

    async def read(self, n=-1):
        return await self._chunks.get()


class FakeTelnetWriter:
    """Writer collecting everything written to it."""

    def __init__(self):
        self.written: list[str] = []
        self.closed = False
        self.wrote = asyncio.Event()

    def write(self, data):
        self.written.append(data)
        self.wrote.set()

    def close(self):
        self.closed = True


@pytest.fixture
def telnet_pair():
    """A scripted reader/writer pair and an open_connection returning them."""
    reader = FakeTelnetReader()
    writer = FakeTelnetWriter()
    calls = []

    async def open_connection(host, port, **kwargs):
        calls.append((host, port, kwargs))
        return reader, writer

    return SimpleNamespace(
        reader=reader, writer=writer, open_connection=open_connection, calls=calls
    )
