"""
Publish/subscribe transport used by the collaboration relay.

The relay only depends on the Transport protocol below. InMemoryBroker and
InMemoryTransport implement it in-process; the WebSocket endpoint of the API
reuses the same broker to relay frames between remote sockets.
"""
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ..config.settings import get_settings


logger = logging.getLogger(__name__)

Handler = Callable[[dict], None]
Deliver = Callable[[str, dict], None]


class TransportError(Exception):
    """Raised when the transport cannot connect or is used while disconnected."""


class BrokerUnavailableError(TransportError):
    """The broker cannot be reached; connecting again may succeed."""


class Transport(Protocol):
    def connect(self, credentials: Optional[dict] = None) -> None: ...
    def emit(self, event: str, payload: dict, room: Optional[str] = None) -> None: ...
    def on(self, event: str, handler: Handler) -> None: ...
    def off(self, event: str, handler: Handler) -> None: ...
    def join_room(self, room: str) -> None: ...
    def leave_room(self, room: str) -> None: ...
    def disconnect(self) -> None: ...


@dataclass(frozen=True)
class ReconnectPolicy:
    """Bounded retries with exponential backoff."""
    attempts: int = 5
    delay_seconds: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        return self.delay_seconds * (2 ** (attempt - 1))

    @classmethod
    def from_settings(cls) -> 'ReconnectPolicy':
        settings = get_settings()
        return cls(attempts=settings.reconnect_attempts, delay_seconds=settings.reconnect_delay_seconds)


class InMemoryBroker:
    """
    Room-based message broker.

    A message published to a room is delivered to every member of the
    room except the sender.
    """

    def __init__(self, authenticator: Optional[Callable[[Optional[dict]], bool]] = None):
        self.authenticator = authenticator
        self.online = True
        self._rooms: dict[str, dict[str, Deliver]] = {}
        self._lock = threading.Lock()

    def accept(self, credentials: Optional[dict]):
        """Admit a connection or raise TransportError."""
        if not self.online:
            raise BrokerUnavailableError("Broker unavailable")
        if self.authenticator is not None and not self.authenticator(credentials):
            raise TransportError("Authentication error")

    def join(self, room: str, member_id: str, deliver: Deliver):
        with self._lock:
            self._rooms.setdefault(room, {})[member_id] = deliver

    def leave(self, room: str, member_id: str):
        with self._lock:
            members = self._rooms.get(room)
            if members is None:
                return
            members.pop(member_id, None)
            if not members:
                del self._rooms[room]

    def leave_all(self, member_id: str):
        with self._lock:
            rooms = [room for room, members in self._rooms.items() if member_id in members]
        for room in rooms:
            self.leave(room, member_id)

    def members(self, room: str) -> list[str]:
        with self._lock:
            return list(self._rooms.get(room, {}))

    def publish(self, room: str, event: str, payload: dict, sender_id: Optional[str] = None) -> int:
        """Deliver to the room; returns the number of receivers."""
        with self._lock:
            targets = [
                deliver for member_id, deliver in self._rooms.get(room, {}).items()
                if member_id != sender_id
            ]
        for deliver in targets:
            deliver(event, payload)
        return len(targets)


class InMemoryTransport:
    """Transport connected to an InMemoryBroker."""

    def __init__(
        self,
        broker: InMemoryBroker,
        policy: Optional[ReconnectPolicy] = None,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.broker = broker
        self.policy = policy or ReconnectPolicy.from_settings()
        self.member_id = uuid.uuid4().hex
        self.connected = False
        self._sleep = sleep
        self._handlers: dict[str, list[Handler]] = {}
        self._rooms: set[str] = set()

    def connect(self, credentials: Optional[dict] = None):
        """Connect, retrying with backoff while the broker is unavailable."""
        attempts = max(1, self.policy.attempts)
        for attempt in range(1, attempts + 1):
            try:
                self.broker.accept(credentials)
            except BrokerUnavailableError:
                if attempt == attempts:
                    raise TransportError(f"Broker unavailable after {attempts} attempts")
                delay = self.policy.delay_for(attempt)
                logger.info("Connect attempt %d failed, retrying in %.1fs", attempt, delay)
                self._sleep(delay)
                continue
            self.connected = True
            return

    def disconnect(self):
        self.broker.leave_all(self.member_id)
        self._rooms.clear()
        self.connected = False

    def on(self, event: str, handler: Handler):
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler):
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def join_room(self, room: str):
        self._require_connection()
        self.broker.join(room, self.member_id, self._deliver)
        self._rooms.add(room)

    def leave_room(self, room: str):
        self.broker.leave(room, self.member_id)
        self._rooms.discard(room)

    def emit(self, event: str, payload: dict, room: Optional[str] = None):
        """Publish to one room, or to every joined room when room is None."""
        self._require_connection()
        rooms = [room] if room is not None else sorted(self._rooms)
        for target in rooms:
            self.broker.publish(target, event, payload, sender_id=self.member_id)

    def _require_connection(self):
        if not self.connected:
            raise TransportError("Transport is not connected")

    def _deliver(self, event: str, payload: dict):
        for handler in list(self._handlers.get(event, [])):
            handler(payload)
