"""
Collaboration API - WebSocket relay for shared calculation sessions.

Clients send {"event": ..., "payload": {...}} frames. Relayed events are
broadcast to the other sockets of the same session with the session id
stamped into the payload.
"""
import asyncio
import contextlib
import json
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..collaboration.relay import EVENT_JOINED, EVENT_LEFT, EVENT_TYPING, EVENT_UPDATED
from .state import broker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["collaboration"])

RELAYED_EVENTS = {EVENT_JOINED, EVENT_LEFT, EVENT_UPDATED, EVENT_TYPING}


@router.websocket("/ws/sessions/{session_id}")
async def session_socket(websocket: WebSocket, session_id: str):
    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue = asyncio.Queue()
    member_id = uuid.uuid4().hex

    def deliver(event: str, payload: dict):
        # Publishers may run on another connection's loop
        loop.call_soon_threadsafe(outbox.put_nowait, {"event": event, "payload": payload})

    def reject(detail: str):
        outbox.put_nowait({"event": "error", "payload": {"detail": detail}})

    async def forward():
        while True:
            message = await outbox.get()
            await websocket.send_json(message)

    # Announced by the client in its participant:joined frame
    participant = None

    broker.join(session_id, member_id, deliver)
    await websocket.accept()
    sender = asyncio.create_task(forward())
    logger.info("Socket %s joined session %s", member_id, session_id)

    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except json.JSONDecodeError:
                reject("Frames must be JSON")
                continue

            if not isinstance(frame, dict) or frame.get("event") not in RELAYED_EVENTS:
                reject("Unknown event")
                continue

            payload = frame.get("payload") or {}
            if not isinstance(payload, dict):
                reject("Payload must be an object")
                continue

            if frame["event"] == EVENT_JOINED and isinstance(payload.get("participant"), dict):
                participant = payload["participant"]
            elif frame["event"] == EVENT_LEFT:
                participant = None

            broker.publish(
                session_id,
                frame["event"],
                {**payload, "session_id": session_id},
                sender_id=member_id,
            )
    except WebSocketDisconnect:
        logger.info("Socket %s left session %s", member_id, session_id)
    finally:
        broker.leave(session_id, member_id)
        if participant is not None:
            # Peers still see the participant leave when the socket drops
            broker.publish(session_id, EVENT_LEFT, {"participant": participant, "session_id": session_id})
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            try:
                await sender
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning("Socket %s stopped sending: %s", member_id, e)
