"""Shared test fixtures and configuration for relay tests."""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
from fastapi.testclient import TestClient

from roomrelay.chat.protocol import RoomRelay
from roomrelay.chat.schemas import ConnectionSession
from roomrelay.chat.store import MessageStore
from roomrelay.chat.transport import SocketIOTransport
from roomrelay.config import AppSettings
from roomrelay.main import create_app


class FakeSocketServer:
    """In-memory stand-in for ``socketio.AsyncServer``.

    Tracks room membership the way python-socketio does (every sid is also in
    a room named after itself) and records each delivered event per sid.
    """

    def __init__(self) -> None:
        self.handlers: Dict[str, Any] = {}
        self.members: Dict[str, Set[str]] = defaultdict(set)
        self.delivered: List[Tuple[str, str, Any]] = []
        self.connected: List[str] = []

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def connect(self, sid: str) -> None:
        self.connected.append(sid)
        self.members[sid].add(sid)
        await self.handlers["connect"](sid, {})

    async def disconnect(self, sid: str) -> None:
        await self.handlers["disconnect"](sid, "client disconnect")
        for sids in self.members.values():
            sids.discard(sid)
        self.connected.remove(sid)

    async def send(self, sid: str, event: str, data: Any = None) -> None:
        await self.handlers[event](sid, data)

    def rooms(self, sid, namespace=None):
        return [room for room, sids in self.members.items() if sid in sids]

    async def enter_room(self, sid, room, namespace=None):
        self.members[room].add(sid)

    async def leave_room(self, sid, room, namespace=None):
        self.members[room].discard(sid)

    async def emit(self, event, data=None, to=None, namespace=None, **kwargs):
        recipients = self.connected if to is None else sorted(self.members.get(to, ()))
        for sid in recipients:
            self.delivered.append((sid, event, data))

    def received(self, sid: str, event: Optional[str] = None) -> List[Any]:
        """Payloads delivered to *sid*, optionally filtered by event name."""
        return [
            data for to, name, data in self.delivered
            if to == sid and (event is None or name == event)
        ]


@pytest.fixture
def store():
    return MessageStore()


@pytest.fixture
def relay(store):
    return RoomRelay(store)


@pytest.fixture
def session_factory():
    def _make(connection_id: str = "c1") -> ConnectionSession:
        return ConnectionSession(connection_id=connection_id)
    return _make


@pytest.fixture
def fake_sio():
    return FakeSocketServer()


@pytest.fixture
def transport(fake_sio, relay):
    return SocketIOTransport(fake_sio, relay)


@pytest.fixture
def relay_app():
    """A FastAPI relay app built from default settings."""
    return create_app(AppSettings())


@pytest.fixture
def api_client(relay_app):
    """Provide a TestClient for a fresh relay app."""
    return TestClient(relay_app)
