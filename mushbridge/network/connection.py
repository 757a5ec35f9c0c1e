"""Telnet transport to the MUSH.

Each connection attempt gets its own TelnetTransport. It dials with
telnetlib3, turns bursts of received text into messages, writes queued
commands, and reports a failure at most once through ``on_error``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import telnetlib3

from ..utils.logging import get_logger


logger = get_logger(__name__)


class TransportError(ConnectionError):
    """The telnet connection could not be established or was lost."""


def normalize_newlines(text: str) -> str:
    """Convert telnet CRLF line endings to plain LF."""
    return text.replace("\r\n", "\n").replace("\r", "")


class TelnetTransport:
    """One telnet connection to the MUSH."""

    def __init__(
        self,
        connection_id: int,
        host: str,
        port: int,
        on_message: Callable[[str, int], Awaitable[None]],
        on_error: Callable[[TransportError, int], Awaitable[None]],
        encoding: str = "utf8",
        connect_timeout: float = 30.0,
        settle_delay: float = 0.5,
        read_size: int = 4096,
        max_burst_size: int = 65536,
        max_burst_time: float = 5.0,
        open_connection: Callable[..., Awaitable[tuple[Any, Any]]] = telnetlib3.open_connection,
    ):
        """Initialize the transport.

        Args:
            connection_id: Identifies this attempt in delivered events
            host: MUSH host name
            port: MUSH port
            on_message: Callback for each burst of received text
            on_error: Callback for the connection's failure
            encoding: Character encoding of the telnet stream
            connect_timeout: Seconds to wait for the connection
            settle_delay: Quiet period that ends a burst of text
            read_size: Maximum characters per read
            max_burst_size: Characters after which a burst is delivered early
            max_burst_time: Seconds after which a burst is delivered early
            open_connection: Coroutine function that dials the MUSH
        """
        self.connection_id = connection_id
        self.host = host
        self.port = port
        self.on_message = on_message
        self.on_error = on_error
        self.encoding = encoding
        self.connect_timeout = connect_timeout
        self.settle_delay = settle_delay
        self.read_size = read_size
        self.max_burst_size = max_burst_size
        self.max_burst_time = max_burst_time
        self._open_connection = open_connection

        self.outbound: asyncio.Queue[str] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._closing = False
        self._error_reported = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Dial the MUSH in the background."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def send(self, line: str) -> None:
        """Queue one line for sending; CRLF is appended on write."""
        if self._closing:
            logger.warning(
                "Dropping line for closed connection", connection_id=self.connection_id
            )
            return
        self.outbound.put_nowait(line)

    async def close(self) -> None:
        """Tear the connection down and wait until it is gone."""
        self._closing = True
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        logger.debug("Telnet connection closed", connection_id=self.connection_id)

    async def _run(self) -> None:
        writer = None
        try:
            logger.info(
                "Dialing telnet",
                host=self.host,
                port=self.port,
                connection_id=self.connection_id,
            )
            try:
                reader, writer = await asyncio.wait_for(
                    self._open_connection(self.host, self.port, encoding=self.encoding),
                    timeout=self.connect_timeout,
                )
            except asyncio.TimeoutError:
                raise TransportError(
                    f"Timed out connecting to {self.host}:{self.port}"
                ) from None

            logger.info("Telnet connected", connection_id=self.connection_id)
            await self._pump(reader, writer)

        except (TransportError, OSError) as e:
            await self._report(e)
        except Exception as e:
            logger.exception("Unexpected telnet failure", connection_id=self.connection_id)
            await self._report(e)
        finally:
            if writer is not None:
                writer.close()

    async def _pump(self, reader: Any, writer: Any) -> None:
        tasks = [
            asyncio.create_task(self._read_loop(reader)),
            asyncio.create_task(self._write_loop(writer)),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                task.result()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        raise TransportError("Telnet session ended")

    async def _read_loop(self, reader: Any) -> None:
        while True:
            chunk = await reader.read(self.read_size)
            if not chunk:
                raise TransportError("Connection closed by remote host")

            # Collect the rest of the burst so a multi-line reply is one message
            chunks = [chunk]
            size = len(chunk)
            at_eof = False
            loop = asyncio.get_running_loop()
            deadline = loop.time() + self.max_burst_time
            while size < self.max_burst_size:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    more = await asyncio.wait_for(
                        reader.read(self.read_size),
                        timeout=min(self.settle_delay, remaining),
                    )
                except asyncio.TimeoutError:
                    break
                if not more:
                    at_eof = True
                    break
                chunks.append(more)
                size += len(more)

            await self.on_message(normalize_newlines("".join(chunks)), self.connection_id)

            if at_eof:
                raise TransportError("Connection closed by remote host")

    async def _write_loop(self, writer: Any) -> None:
        while True:
            line = await self.outbound.get()
            logger.debug("Sending line", connection_id=self.connection_id, length=len(line))
            writer.write(line + "\r\n")

    async def _report(self, error: Exception) -> None:
        if self._closing or self._error_reported:
            return
        self._error_reported = True

        if not isinstance(error, TransportError):
            error = TransportError(str(error) or type(error).__name__)
        await self.on_error(error, self.connection_id)
