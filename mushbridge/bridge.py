"""MUSH bridge wiring.

Ticks from the scheduler and text or errors from the telnet transport are
all put on one queue. A single processing task drains it and is the only
code that touches the session state machine.
"""

import asyncio
import itertools
import traceback
from collections.abc import Callable

from .api.server import SnapshotServer
from .config.models import Settings
from .models.events import BridgeEvent, MessageEvent, TickEvent, TransportErrorEvent
from .models.world import RosterSnapshot
from .network.connection import TelnetTransport, TransportError
from .scheduler import PollingScheduler
from .state.machine import ReconnectBackoff, SessionState, SessionStateMachine
from .utils.logging import get_logger


logger = get_logger(__name__)

TransportFactory = Callable[..., TelnetTransport]


class MushBridge:
    """Owns the session and serves its roster over HTTP."""

    def __init__(
        self,
        settings: Settings,
        transport_factory: TransportFactory = TelnetTransport,
    ) -> None:
        """Initialize the bridge.

        Args:
            settings: Loaded configuration
            transport_factory: Builds one transport per connection attempt
        """
        self.settings = settings
        self._transport_factory = transport_factory

        backoff = None
        if settings.reconnect.enabled:
            backoff = ReconnectBackoff(
                base_delay=settings.reconnect.base_delay,
                max_delay=settings.reconnect.max_delay,
            )

        self.machine = SessionStateMachine(
            login_command=settings.mush.connect_command,
            connect=self._connect,
            send=self._send,
            backoff=backoff,
        )

        self.events: asyncio.Queue[BridgeEvent] = asyncio.Queue()
        self.scheduler = PollingScheduler(settings.polling.interval, self._on_tick)
        self.api_server = SnapshotServer(settings.api, lambda: self.snapshot)

        self.transport: TelnetTransport | None = None
        self._connection_ids = itertools.count(1)
        self._retired: set[asyncio.Task] = set()
        self._processing_task: asyncio.Task | None = None
        self._shutdown_event = asyncio.Event()
        self.running = False

    @property
    def snapshot(self) -> RosterSnapshot:
        """Latest roster snapshot; safe to read from any coroutine."""
        return self.machine.snapshot

    @property
    def state(self) -> SessionState:
        return self.machine.state

    async def start(self) -> None:
        """Start processing, polling and the HTTP server."""
        logger.info(
            "Starting MUSH bridge",
            mush_host=self.settings.mush.host,
            mush_port=self.settings.mush.port,
            poll_interval=self.settings.polling.interval,
        )
        self.running = True
        self._processing_task = asyncio.create_task(self._process_events())

        try:
            await self.api_server.start()
        except Exception:
            await self.shutdown()
            raise

        self.scheduler.start()
        logger.info("MUSH bridge started")

    async def shutdown(self) -> None:
        """Stop everything and drop the telnet connection."""
        if not self.running:
            return
        logger.info("Shutting down MUSH bridge...")
        self.running = False

        await self.scheduler.stop()

        if self._processing_task:
            self._processing_task.cancel()
            try:
                await self._processing_task
            except asyncio.CancelledError:
                pass
            self._processing_task = None

        if self.transport:
            await self.transport.close()
            self.transport = None
        if self._retired:
            await asyncio.gather(*self._retired, return_exceptions=True)

        await self.api_server.stop()

        self._shutdown_event.set()
        logger.info("MUSH bridge shutdown complete")

    async def wait_for_shutdown(self) -> None:
        """Wait for the bridge to shut down."""
        await self._shutdown_event.wait()

    async def _on_tick(self) -> None:
        await self.events.put(TickEvent())

    async def _on_message(self, text: str, connection_id: int) -> None:
        await self.events.put(MessageEvent(text=text, connection_id=connection_id))

    async def _on_error(self, error: TransportError, connection_id: int) -> None:
        await self.events.put(TransportErrorEvent(error=error, connection_id=connection_id))

    async def _process_events(self) -> None:
        """Feed queued events to the state machine, one at a time."""
        while True:
            event = await self.events.get()
            try:
                self._dispatch(event)
            except Exception:
                self._log_failure(event)
            finally:
                self.events.task_done()

    def _log_failure(self, event: BridgeEvent) -> None:
        try:
            logger.exception("Error processing event", event_type=type(event).__name__)
        except Exception:
            # The loop must outlive a broken log call
            traceback.print_exc()

    def _dispatch(self, event: BridgeEvent) -> None:
        if isinstance(event, TickEvent):
            self.machine.on_tick()
        elif not self._is_current(event.connection_id):
            logger.debug(
                "Ignoring event from stale connection",
                event_type=type(event).__name__,
                connection_id=event.connection_id,
            )
        elif isinstance(event, MessageEvent):
            self.machine.on_message(event.text)
        elif isinstance(event, TransportErrorEvent):
            self.machine.on_transport_error(event.error)
            self._retire_transport()

    def _is_current(self, connection_id: int) -> bool:
        return self.transport is not None and self.transport.connection_id == connection_id

    def _connect(self) -> None:
        self._retire_transport()
        s = self.settings.mush
        self.transport = self._transport_factory(
            connection_id=next(self._connection_ids),
            host=s.host,
            port=s.port,
            on_message=self._on_message,
            on_error=self._on_error,
            encoding=s.encoding,
            connect_timeout=s.connect_timeout,
            settle_delay=s.settle_delay,
            read_size=s.read_size,
            max_burst_size=s.max_burst_size,
            max_burst_time=s.max_burst_time,
        )
        self.transport.start()

    def _send(self, line: str) -> None:
        if self.transport is None:
            logger.warning("No telnet connection, dropping line")
            return
        self.transport.send(line)

    def _retire_transport(self) -> None:
        """Close the current transport in the background."""
        if self.transport is None:
            return
        task = asyncio.create_task(self.transport.close())
        self._retired.add(task)
        task.add_done_callback(self._retired.discard)
        self.transport = None
