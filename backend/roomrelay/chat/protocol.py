"""Room relay protocol: turns inbound events into store updates and effects.

The protocol never talks to the network. Each handler mutates the message
store when needed and yields effects that the transport applies one by one,
in order:

    - ``LeaveAllGroups``: drop every group membership of a connection.
    - ``JoinGroup``: add a connection to a room group.
    - ``Emit``: send one event to a single connection or to a room group.

Events:
    - join(room): leave all groups, join ``room``, replay its full history
      to the joining connection only (``messages``).
    - message(room, text): store a new Message under ``room`` and broadcast
      it to the ``room`` group (``message``). The sender does not have to be
      a member of ``room``; the payload addresses the room explicitly.
    - disconnect: leave all groups.

Emission is fire-and-forget. The protocol gets no delivery result back; a
stored message stays stored whatever happens to its broadcast.
"""
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Union

from .schemas import ConnectionSession, Message, MessageIn, Messages
from .store import MessageStore

logger = logging.getLogger(__name__)

JOIN_EVENT = "join"
MESSAGE_EVENT = "message"
MESSAGES_EVENT = "messages"


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToConnection:
    """Recipient selector: one connection."""
    connection_id: str


@dataclass(frozen=True)
class ToGroup:
    """Recipient selector: every connection currently in a room group."""
    room: str


@dataclass(frozen=True)
class Emit:
    target: Union[ToConnection, ToGroup]
    event: str
    payload: Any


@dataclass(frozen=True)
class JoinGroup:
    connection_id: str
    room: str


@dataclass(frozen=True)
class LeaveAllGroups:
    connection_id: str


Effect = Union[Emit, JoinGroup, LeaveAllGroups]


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class RoomRelay:
    """Event handlers for the relay, bound to one message store.

    Handlers are async generators. The transport applies each effect as it
    is yielded, before the handler resumes, so a join's group membership is
    in place before its history is read. A message accepted while the join
    is in flight therefore reaches the joiner by broadcast, by replay, or
    both; it is never missed by both.
    """

    def __init__(self, store: MessageStore) -> None:
        self.store = store

    async def handle(
        self, session: ConnectionSession, event: str, payload: Any
    ) -> AsyncIterator[Effect]:
        """Dispatch a decoded inbound event.

        Args:
            session: The sending connection's session (updated in place).
            event: Event name (``join`` or ``message``).
            payload: Decoded payload: a ``str`` for join, ``MessageIn`` for
                message.

        Yields:
            Effects for the transport to apply, in order. Unknown events
            yield nothing.
        """
        if event == JOIN_EVENT:
            handler = self.on_join(session, payload)
        elif event == MESSAGE_EVENT:
            handler = self.on_message(session, payload)
        else:
            logger.debug("Ignoring unknown event %r from %s", event, session.connection_id)
            return
        async for effect in handler:
            yield effect

    async def on_join(self, session: ConnectionSession, room: str) -> AsyncIterator[Effect]:
        logger.info("Received join: %r", room)
        session.room = room
        yield LeaveAllGroups(session.connection_id)
        yield JoinGroup(session.connection_id, room)
        messages = await self.store.get(room)
        yield Emit(
            ToConnection(session.connection_id),
            MESSAGES_EVENT,
            Messages(messages=messages).model_dump(mode="json"),
        )

    async def on_message(self, session: ConnectionSession, data: MessageIn) -> AsyncIterator[Effect]:
        logger.info("Received message: %r", data)
        message = Message(text=data.text, user=session.user)
        await self.store.insert(data.room, message)
        yield Emit(ToGroup(data.room), MESSAGE_EVENT, message.model_dump(mode="json"))

    async def on_disconnect(self, session: ConnectionSession) -> AsyncIterator[Effect]:
        session.room = None
        yield LeaveAllGroups(session.connection_id)
