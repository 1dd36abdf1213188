"""Socket.IO transport for the room relay.

This module is the boundary between python-socketio and the relay protocol:

    - Tracks a ``ConnectionSession`` per connected socket.
    - Decodes inbound ``join`` and ``message`` payloads. Malformed payloads
      are dropped here; the protocol never sees them and the client gets
      no reply.
    - Applies the protocol's effects with Socket.IO rooms as groups.

Delivery is fire-and-forget: a failed emit is logged at DEBUG and otherwise
ignored. Nothing is retried and the sender is never told.
"""
import logging
from typing import Any, AsyncIterable, Dict, List, Optional

import socketio
from pydantic import ValidationError

from .protocol import (
    JOIN_EVENT,
    MESSAGE_EVENT,
    Effect,
    Emit,
    JoinGroup,
    LeaveAllGroups,
    RoomRelay,
    ToConnection,
)
from .schemas import ConnectionSession, MessageIn

logger = logging.getLogger(__name__)


def create_server(
    allowed_origins: List[str],
    ping_interval: float = 25,
    ping_timeout: float = 20,
) -> socketio.AsyncServer:
    """Build the ASGI Socket.IO server.

    Args:
        allowed_origins: CORS origins; ``["*"]`` allows any origin.
        ping_interval: Seconds between server pings.
        ping_timeout: Seconds to wait for a pong before dropping the client.
    """
    origins = "*" if "*" in allowed_origins else allowed_origins
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=origins,
        ping_interval=ping_interval,
        ping_timeout=ping_timeout,
    )


class SocketIOTransport:
    """Wires a ``RoomRelay`` onto a python-socketio server namespace."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        relay: RoomRelay,
        namespace: str = "/",
    ) -> None:
        self.sio = sio
        self.relay = relay
        self.namespace = namespace

        # sid -> session, for connections currently open
        self.sessions: Dict[str, ConnectionSession] = {}

        sio.on("connect", self.on_connect, namespace=namespace)
        sio.on("disconnect", self.on_disconnect, namespace=namespace)
        sio.on(JOIN_EVENT, self.on_join, namespace=namespace)
        sio.on(MESSAGE_EVENT, self.on_message, namespace=namespace)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        logger.info("Socket connected: %s", sid)
        self.sessions[sid] = ConnectionSession(connection_id=sid)

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        logger.info("Socket disconnected: %s (%s)", sid, reason)
        session = self.sessions.pop(sid, None)
        if session is None:
            return
        await self.apply(self.relay.on_disconnect(session))

    def _session(self, sid: str) -> ConnectionSession:
        session = self.sessions.get(sid)
        if session is None:
            session = self.sessions[sid] = ConnectionSession(connection_id=sid)
        return session

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def on_join(self, sid: str, data: Any = None) -> None:
        if not isinstance(data, str):
            logger.debug("Dropping malformed join payload from %s: %r", sid, data)
            return
        session = self._session(sid)
        await self.apply(self.relay.handle(session, JOIN_EVENT, data))

    async def on_message(self, sid: str, data: Any = None) -> None:
        try:
            payload = MessageIn.model_validate(data)
        except ValidationError as e:
            logger.debug("Dropping malformed message payload from %s: %s", sid, e)
            return
        session = self._session(sid)
        await self.apply(self.relay.handle(session, MESSAGE_EVENT, payload))

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def apply(self, effects: AsyncIterable[Effect]) -> None:
        """Apply protocol effects in order, each before the next is produced."""
        async for effect in effects:
            if isinstance(effect, LeaveAllGroups):
                await self.leave_all(effect.connection_id)
            elif isinstance(effect, JoinGroup):
                await self.sio.enter_room(
                    effect.connection_id, effect.room, namespace=self.namespace
                )
            elif isinstance(effect, Emit):
                if isinstance(effect.target, ToConnection):
                    to = effect.target.connection_id
                else:
                    to = effect.target.room
                await self._safe_emit(effect.event, effect.payload, to)

    async def leave_all(self, sid: str) -> None:
        """Remove a connection from every room except its own sid room."""
        for room in list(self.sio.rooms(sid, namespace=self.namespace)):
            if room == sid:
                continue
            await self.sio.leave_room(sid, room, namespace=self.namespace)

    async def broadcast(self, event: str, data: Any) -> bool:
        """Emit an event to every connected client."""
        return await self._safe_emit(event, data, None)

    async def _safe_emit(self, event: str, data: Any, to: Optional[str]) -> bool:
        """Emit with error handling.

        Returns:
            True if the emit was handed to the server, False if it failed.
        """
        try:
            await self.sio.emit(event, data, to=to, namespace=self.namespace)
            return True
        except Exception as e:
            logger.debug("Failed to emit %r to %s: %s", event, to, e)
            return False
