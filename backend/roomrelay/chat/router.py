"""HTTP endpoints for the room relay.

Endpoints:
    GET /rooms/{room}/messages - Read-only snapshot of a room's history
"""
import logging

from fastapi import APIRouter, Request

from .schemas import Messages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rooms"])


@router.get("/rooms/{room}/messages", response_model=Messages)
async def get_room_messages(room: str, request: Request) -> Messages:
    """Return the same history a connection receives when it joins *room*.

    Does not touch group membership. Unknown rooms return an empty list.
    """
    store = request.app.state.store
    messages = await store.get(room)
    logger.debug("History for room %r: %d messages", room, len(messages))
    return Messages(messages=messages)
