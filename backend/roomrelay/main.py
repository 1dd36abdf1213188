"""Room Relay application.

This is the main entry point for the relay service. Clients connect with a
Socket.IO client, ``join`` a room, and send ``message`` events that are
stored in the room's history and broadcast to the room.

The served ASGI application is ``asgi_app``: the Socket.IO server handling
``/socket.io/`` with the FastAPI ``app`` behind it for plain HTTP routes.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from roomrelay import __version__
from roomrelay.chat.protocol import RoomRelay
from roomrelay.chat.router import router as rooms_router
from roomrelay.chat.store import MessageStore
from roomrelay.chat.transport import SocketIOTransport, create_server
from roomrelay.config import AppSettings, get_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# engineio/socketio log every packet at INFO when their own loggers are on.
for _noisy in (
    "engineio",
    "engineio.server",
    "socketio",
    "socketio.server",
    "uvicorn.access",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    config: AppSettings = app.state.config

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    logger.info(
        f"Starting server on http://{config.server.host}:{config.server.port}"
    )

    yield  # Application runs here

    logger.info("Application shutdown complete")


def create_app(config: Optional[AppSettings] = None) -> FastAPI:
    """Build the FastAPI app with a fresh message store and Socket.IO server.

    The store, relay and transport are kept on ``app.state`` so routes and
    tests reach the same instances.
    """
    config = config or get_config()

    app = FastAPI(
        title="Room Relay",
        description="Real-time room-based message relay over Socket.IO",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = MessageStore()
    sio = create_server(
        config.server.allowed_origins,
        ping_interval=config.socketio.ping_interval,
        ping_timeout=config.socketio.ping_timeout,
    )
    relay = RoomRelay(store)

    app.state.config = config
    app.state.store = store
    app.state.sio = sio
    app.state.relay = relay
    app.state.transport = SocketIOTransport(sio, relay)

    app.include_router(rooms_router)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "Hello, World!"

    @app.get("/hello")
    async def hello() -> None:
        """Broadcast ``hello: "world"`` to every connected socket."""
        await app.state.transport.broadcast("hello", "world")

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "ok"}

    return app


def create_asgi_app(app: FastAPI) -> socketio.ASGIApp:
    """Mount the app's Socket.IO server in front of its HTTP routes."""
    return socketio.ASGIApp(app.state.sio, other_asgi_app=app)


app = create_app()
asgi_app = create_asgi_app(app)
