"""Pydantic schemas for the room relay.

Wire shapes:
    - ``join`` (inbound): a bare string, the room name.
    - ``message`` (inbound): ``{"room": str, "text": str}``.
    - ``messages`` (outbound, joiner only): ``{"messages": [Message, ...]}``.
    - ``message`` (outbound, room group): a single ``Message``.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

ANON_PREFIX = "anon-"


def anon_label(connection_id: str) -> str:
    """Chat handle for a connection, derived only from its transport id."""
    return f"{ANON_PREFIX}{connection_id}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """One accepted chat message, as stored in history and broadcast.

    Attributes:
        text: Message body, arbitrary length.
        user: Anonymised label of the sending connection.
        date: Server receipt time (UTC). Serialised as ISO-8601 with ``Z``.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Message body")
    user: str = Field(..., description="Sender label (anon-<connection id>)")
    date: datetime = Field(default_factory=utc_now, description="UTC receipt time")


class MessageIn(BaseModel):
    """Inbound ``message`` event payload. Both fields are required strings."""
    room: StrictStr
    text: StrictStr


class Messages(BaseModel):
    """Outbound ``messages`` payload replayed to a joining connection."""
    messages: List[Message] = Field(default_factory=list)


class ConnectionSession(BaseModel):
    """Transient per-connection state held by the transport.

    A connection belongs to zero or one room at a time. ``room`` mirrors the
    transport group the connection was last placed in; the store never sees it.
    """
    connection_id: str
    room: Optional[str] = None

    @property
    def user(self) -> str:
        return anon_label(self.connection_id)
