"""Session state machine driving the MUSH conversation.

Two kinds of event reach the machine: text from the MUSH and ticks from
the polling scheduler. Ticks decide what to ask next while the session is
idle; text completes whatever round-trip is outstanding. Both are fed in
by one processing task, so no method here is ever re-entered.
"""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..models.world import Player, RosterSnapshot
from ..network.parsers import WHO_COMMAND, ParseError, location_query, parse_location, parse_roster
from ..utils.logging import get_logger
from .cache import LocationCache, UnresolvedQueue


logger = get_logger(__name__)


class SessionState(Enum):
    """Session state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    LOGGING_IN = "logging_in"
    IDLE = "idle"
    AWAITING_ROSTER = "awaiting_roster"
    AWAITING_LOCATION = "awaiting_location"


@dataclass
class ReconnectBackoff:
    """Exponential delay between dial attempts after transport failures."""

    base_delay: float = 5.0
    max_delay: float = 300.0
    failure_count: int = 0
    last_attempt: float = 0
    delay: float = 0

    @property
    def backoff_time(self) -> float:
        """Seconds to wait after the last attempt before dialing again."""
        return self.delay

    def _next_delay(self) -> float:
        backoff = min(self.base_delay * (2 ** (self.failure_count - 1)), self.max_delay)
        jitter = random.uniform(0, backoff * 0.1)
        return backoff + jitter

    def can_attempt(self, now: float) -> bool:
        """Check if enough time has passed for another connection attempt."""
        if self.failure_count == 0:
            return True
        return now - self.last_attempt >= self.delay

    def record_attempt(self, now: float) -> None:
        self.last_attempt = now

    def record_failure(self) -> None:
        """Count a failure and fix the delay before the next attempt."""
        self.failure_count += 1
        self.delay = self._next_delay()

    def reset(self) -> None:
        self.failure_count = 0
        self.delay = 0


class SessionStateMachine:
    """Decides the next command to send and digests the MUSH's replies."""

    def __init__(
        self,
        login_command: str,
        connect: Callable[[], None],
        send: Callable[[str], None],
        backoff: ReconnectBackoff | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the state machine.

        Args:
            login_command: Command sent once the MUSH greets us
            connect: Starts a new telnet connection
            send: Queues one line for the current connection
            backoff: Reconnect backoff policy; None re-dials on every tick
            clock: Monotonic time source used by the backoff
        """
        self.login_command = login_command
        self._connect = connect
        self._send = send
        self.backoff = backoff
        self._clock = clock

        self.state = SessionState.DISCONNECTED
        self.roster: tuple[Player, ...] = ()
        self.cache = LocationCache()
        self.unresolved = UnresolvedQueue()
        self._snapshot = RosterSnapshot()

    @property
    def snapshot(self) -> RosterSnapshot:
        """Latest published roster and location names."""
        return self._snapshot

    def on_tick(self) -> None:
        """Handle a polling tick."""
        if self.state == SessionState.DISCONNECTED:
            self._reconnect()
        elif self.state == SessionState.IDLE:
            head = self.unresolved.head
            if head is not None:
                self._set_state(SessionState.AWAITING_LOCATION)
                self._send(location_query(head))
            else:
                self._set_state(SessionState.AWAITING_ROSTER)
                self._send(WHO_COMMAND)
        else:
            logger.debug("Tick ignored", state=self.state.value)

    def on_message(self, text: str) -> None:
        """Handle text received from the MUSH."""
        if self.state == SessionState.CONNECTING:
            logger.info("Logging in...")
            self._set_state(SessionState.LOGGING_IN)
            self._send(self.login_command)
        elif self.state == SessionState.LOGGING_IN:
            logger.info("Login successful")
            self._set_state(SessionState.IDLE)
            if self.backoff:
                self.backoff.reset()
        elif self.state == SessionState.AWAITING_ROSTER:
            self._set_state(SessionState.IDLE)
            self._process_roster(text)
        elif self.state == SessionState.AWAITING_LOCATION:
            self._set_state(SessionState.IDLE)
            self._process_location(text)
        else:
            logger.warning("Received unexpected message", state=self.state.value, text=text)

    def on_transport_error(self, error: Exception) -> None:
        """Drop back to disconnected so the next tick dials again."""
        logger.error("Telnet error", error=str(error), state=self.state.value)
        self._set_state(SessionState.DISCONNECTED)
        if self.backoff:
            self.backoff.record_failure()

    def _reconnect(self) -> None:
        now = self._clock()
        if self.backoff:
            if not self.backoff.can_attempt(now):
                logger.debug(
                    "Reconnect deferred", failure_count=self.backoff.failure_count
                )
                return
            self.backoff.record_attempt(now)

        logger.info("Connecting...")
        self._set_state(SessionState.CONNECTING)
        self._connect()

    def _process_roster(self, text: str) -> None:
        try:
            roster = parse_roster(text)
        except ParseError as e:
            logger.warning("Discarding who reply", error=str(e))
            return

        self.roster = roster
        self.unresolved.rebuild(roster, self.cache)
        logger.debug(
            "Roster updated", players=len(roster), unresolved=len(self.unresolved)
        )
        self._publish()

    def _process_location(self, text: str) -> None:
        try:
            location_id, name = parse_location(text)
        except ParseError as e:
            logger.warning("Discarding location reply", error=str(e), text=text)
            return

        self.cache.insert(location_id, name)
        # Only the head is popped; a reply for another id leaves the queue as is
        self.unresolved.pop_if_head(location_id)
        logger.debug("Location resolved", location_id=location_id, name=name)
        self._publish()

    def _publish(self) -> None:
        self._snapshot = RosterSnapshot(players=self.roster, locations=self.cache.snapshot())

    def _set_state(self, state: SessionState) -> None:
        if state != self.state:
            logger.debug("Session state change", old=self.state.value, new=state.value)
        self.state = state
