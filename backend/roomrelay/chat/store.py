"""In-memory message history for chat rooms.

The store maps a room name to its append-only list of messages. It is the
only shared mutable state in the relay: every connection handler reads and
writes through the same instance.

Concurrency:
    All access goes through a single ``asyncio.Lock``. The order in which
    ``insert`` calls acquire the lock is the stored order for that room.
    Readers always receive a copy, so a history returned by ``get`` is never
    affected by later inserts.

    The lock belongs to the event loop the store is first used on. The store
    is NOT thread-safe.
"""
import asyncio
import logging
from typing import Dict, List

from .schemas import Message

logger = logging.getLogger(__name__)


class MessageStore:
    """Room name -> ordered message history."""

    def __init__(self) -> None:
        # room -> list of messages (append-only history)
        self._history: Dict[str, List[Message]] = {}
        self._lock = asyncio.Lock()

    async def get(self, room: str) -> List[Message]:
        """Return a snapshot of a room's history.

        Args:
            room: Room name. Unknown rooms are treated as empty.

        Returns:
            List of messages in insertion order (a copy).
        """
        async with self._lock:
            return list(self._history.get(room, ()))

    async def insert(self, room: str, message: Message) -> Message:
        """Append a message to a room's history, creating the room if needed.

        Args:
            room: Room name.
            message: The message to store.

        Returns:
            The same message (for chaining).
        """
        async with self._lock:
            self._history.setdefault(room, []).append(message)
        return message
