"""
Collaboration Relay - replicates calculator state across a shared session.

Thin event layer over a Transport:
- join/leave broadcast participant presence
- send_update broadcasts the full inputs/results snapshot
- send_typing broadcasts a typing signal that expires after a debounce window

Replication is last-write-wins: every receiver applies snapshots in arrival
order and concurrent edits overwrite each other. There is no merge.
"""
import logging
import threading
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Optional

from ..config.settings import get_settings
from ..engine.models import CalculationResult, CalculatorInputs
from .scheduler import ThreadTimerScheduler
from .transport import Transport, TransportError


logger = logging.getLogger(__name__)

EVENT_JOINED = 'participant:joined'
EVENT_LEFT = 'participant:left'
EVENT_UPDATED = 'calculation:updated'
EVENT_TYPING = 'participant:typing'


@dataclass(frozen=True)
class Participant:
    """A member of a collaboration session."""
    user_id: str
    display_label: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> 'Participant':
        return cls(user_id=str(data['user_id']), display_label=data.get('display_label', ''))


@dataclass(frozen=True)
class CollaborationUpdate:
    """A replicated snapshot received from another participant."""
    session_id: str
    inputs: CalculatorInputs
    result: CalculationResult
    updated_by: Optional[str] = None


@dataclass
class CollaborationSession:
    """Local mirror of a shared calculation."""
    session_id: str
    participants: dict[str, Participant] = field(default_factory=dict)
    typing: set[str] = field(default_factory=set)
    last_update: Optional[CollaborationUpdate] = None


class CollaborationRelay:
    """
    Session-scoped relay of calculator state.

    Subscriptions (on_update, on_participant_joined, on_participant_left,
    on_typing) return a callable that removes the subscription.
    """

    def __init__(
        self,
        transport: Transport,
        scheduler: Any = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.transport = transport
        self.scheduler = scheduler or ThreadTimerScheduler()
        if debounce_seconds is None:
            debounce_seconds = get_settings().typing_debounce_seconds
        self.debounce_seconds = debounce_seconds
        self.local_only = False
        self.sessions: dict[str, CollaborationSession] = {}

        self._subscribers: dict[str, list[Callable]] = {
            EVENT_JOINED: [], EVENT_LEFT: [], EVENT_UPDATED: [], EVENT_TYPING: [],
        }
        # (session_id, user_id) -> (token, handle) of the one pending timer
        self._outbound_typing: dict[tuple[str, str], Any] = {}
        self._inbound_typing: dict[tuple[str, str], Any] = {}
        self._lock = threading.RLock()

        transport.on(EVENT_JOINED, self._handle_joined)
        transport.on(EVENT_LEFT, self._handle_left)
        transport.on(EVENT_UPDATED, self._handle_update)
        transport.on(EVENT_TYPING, self._handle_typing)

    def start(self, credentials: Optional[dict] = None) -> bool:
        """
        Connect the transport.

        On failure the relay degrades to local-only mode instead of raising;
        returns False in that case.
        """
        try:
            self.transport.connect(credentials)
        except TransportError as e:
            logger.warning("Collaboration unavailable, continuing in local-only mode: %s", e)
            self.local_only = True
            return False
        self.local_only = False
        return True

    def stop(self):
        """Cancel pending timers and disconnect."""
        with self._lock:
            handles = [
                handle for timers in (self._outbound_typing, self._inbound_typing)
                for _, handle in timers.values()
            ]
            self._outbound_typing.clear()
            self._inbound_typing.clear()
        for handle in handles:
            handle.cancel()
        if not self.local_only:
            self.transport.disconnect()

    def session(self, session_id: str) -> CollaborationSession:
        """Get (or create) the local mirror of a session."""
        with self._lock:
            if session_id not in self.sessions:
                self.sessions[session_id] = CollaborationSession(session_id=session_id)
            return self.sessions[session_id]

    # Outbound operations

    def join(self, session_id: str, participant: Participant):
        session = self.session(session_id)
        with self._lock:
            session.participants[participant.user_id] = participant
        if self.local_only:
            return
        try:
            self.transport.join_room(session_id)
        except TransportError as e:
            logger.warning("Could not join session %s, keeping local state only: %s", session_id, e)
            return
        self._emit(session_id, EVENT_JOINED, {'participant': asdict(participant)})

    def leave(self, session_id: str, participant: Participant):
        self._cancel_timer(self._outbound_typing, (session_id, participant.user_id))
        self._cancel_timer(self._inbound_typing, (session_id, participant.user_id))
        session = self.session(session_id)
        with self._lock:
            session.participants.pop(participant.user_id, None)
            session.typing.discard(participant.user_id)
        if self.local_only:
            return
        self._emit(session_id, EVENT_LEFT, {'participant': asdict(participant)})
        try:
            self.transport.leave_room(session_id)
        except TransportError as e:
            logger.warning("Could not leave session %s cleanly: %s", session_id, e)

    def send_update(
        self,
        session_id: str,
        inputs: CalculatorInputs,
        result: CalculationResult,
        updated_by: Optional[str] = None,
    ):
        """Broadcast the full inputs/results snapshot (not a delta)."""
        update = CollaborationUpdate(session_id, inputs, result, updated_by)
        with self._lock:
            self.session(session_id).last_update = update
        if self.local_only:
            return
        self._emit(session_id, EVENT_UPDATED, {
            'inputs': inputs.to_dict(),
            'results': result.to_dict(),
            'updated_by': updated_by,
        })

    def send_typing(self, session_id: str, participant: Participant):
        """Signal typing; a 'stopped' signal follows one debounce window after the last call."""
        if not self.local_only:
            self._emit(session_id, EVENT_TYPING, {'user_id': participant.user_id, 'is_typing': True})
        self._restart_timer(self._outbound_typing, session_id, participant.user_id, self._outbound_typing_expired)

    # Subscriptions

    def on_update(self, callback: Callable[[CollaborationUpdate], Any]) -> Callable[[], None]:
        return self._subscribe(EVENT_UPDATED, callback)

    def on_participant_joined(self, callback: Callable[[str, Participant], Any]) -> Callable[[], None]:
        return self._subscribe(EVENT_JOINED, callback)

    def on_participant_left(self, callback: Callable[[str, Participant], Any]) -> Callable[[], None]:
        return self._subscribe(EVENT_LEFT, callback)

    def on_typing(self, callback: Callable[[str, str, bool], Any]) -> Callable[[], None]:
        return self._subscribe(EVENT_TYPING, callback)

    def _subscribe(self, event: str, callback: Callable) -> Callable[[], None]:
        with self._lock:
            self._subscribers[event].append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers[event]:
                    self._subscribers[event].remove(callback)

        return unsubscribe

    def _notify(self, event: str, *args):
        with self._lock:
            callbacks = list(self._subscribers[event])
        for callback in callbacks:
            callback(*args)

    # Inbound handlers

    def _handle_joined(self, payload: dict):
        session_id = payload['session_id']
        participant = Participant.from_dict(payload['participant'])
        with self._lock:
            self.session(session_id).participants[participant.user_id] = participant
        self._notify(EVENT_JOINED, session_id, participant)

    def _handle_left(self, payload: dict):
        session_id = payload['session_id']
        participant = Participant.from_dict(payload['participant'])
        self._cancel_timer(self._inbound_typing, (session_id, participant.user_id))
        with self._lock:
            session = self.session(session_id)
            session.participants.pop(participant.user_id, None)
            session.typing.discard(participant.user_id)
        self._notify(EVENT_LEFT, session_id, participant)

    def _handle_update(self, payload: dict):
        update = CollaborationUpdate(
            session_id=payload['session_id'],
            inputs=CalculatorInputs.from_dict(payload['inputs']),
            result=CalculationResult.from_dict(payload['results']),
            updated_by=payload.get('updated_by'),
        )
        with self._lock:
            self.session(update.session_id).last_update = update
        self._notify(EVENT_UPDATED, update)

    def _handle_typing(self, payload: dict):
        session_id = payload['session_id']
        user_id = str(payload['user_id'])
        is_typing = bool(payload.get('is_typing'))
        with self._lock:
            typing = self.session(session_id).typing
            if is_typing:
                typing.add(user_id)
            else:
                typing.discard(user_id)
        if is_typing:
            self._restart_timer(self._inbound_typing, session_id, user_id, self._inbound_typing_expired)
        else:
            self._cancel_timer(self._inbound_typing, (session_id, user_id))
        self._notify(EVENT_TYPING, session_id, user_id, is_typing)

    # Timers

    def _outbound_typing_expired(self, token: object, session_id: str, user_id: str):
        if not self._release_timer(self._outbound_typing, (session_id, user_id), token):
            return
        if not self.local_only:
            self._emit(session_id, EVENT_TYPING, {'user_id': user_id, 'is_typing': False})

    def _inbound_typing_expired(self, token: object, session_id: str, user_id: str):
        with self._lock:
            if not self._release_timer(self._inbound_typing, (session_id, user_id), token):
                return
            typing = self.session(session_id).typing
            if user_id not in typing:
                return
            typing.discard(user_id)
        self._notify(EVENT_TYPING, session_id, user_id, False)

    def _restart_timer(self, timers: dict, session_id: str, user_id: str, callback: Callable):
        """Replace the pending timer of a participant; at most one stays pending."""
        key = (session_id, user_id)
        token = object()
        with self._lock:
            previous = timers.pop(key, None)
            handle = self.scheduler.call_later(self.debounce_seconds, callback, token, session_id, user_id)
            timers[key] = (token, handle)
        if previous is not None:
            previous[1].cancel()

    def _release_timer(self, timers: dict, key: tuple[str, str], token: object) -> bool:
        # A timer that already started firing ignores cancel(); only the current one may act
        with self._lock:
            current = timers.get(key)
            if current is None or current[0] is not token:
                return False
            del timers[key]
            return True

    def _cancel_timer(self, timers: dict, key: tuple[str, str]):
        with self._lock:
            entry = timers.pop(key, None)
        if entry is not None:
            entry[1].cancel()

    def _emit(self, session_id: str, event: str, payload: dict):
        # Not retried: the next full snapshot resynchronizes receivers
        try:
            self.transport.emit(event, {'session_id': session_id, **payload}, room=session_id)
        except TransportError as e:
            logger.warning("Dropped %s for session %s: %s", event, session_id, e)
