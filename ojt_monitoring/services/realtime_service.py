"""
Real-time Service - Socket.IO server for chat events.

Clients emit `join` with their user id after connecting; the socket then
receives events addressed to that user and to every conversation the user
belongs to. Rooms are named by id (user id or conversation id).
"""

from typing import Any, Iterable, Optional

import socketio
from bson import ObjectId
from fastapi.encoders import jsonable_encoder

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger
from ojt_monitoring.db.mongodb import COLLECTIONS, get_collection
from ojt_monitoring.services.mongo_service import serialize_doc

settings = get_settings()

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*" if settings.cors_origins == ["*"] else settings.cors_origins,
    logger=False,
    engineio_logger=False,
)


def _extract_user_id(data: Any) -> Optional[str]:
    """Accepts a bare id or {"userId": id}."""
    if isinstance(data, dict):
        data = data.get("userId") or data.get("_id")
    if isinstance(data, str) and data:
        return data
    return None


@sio.event
async def connect(sid, environ, auth=None):
    logger.info(f"[Socket] Client connected: {sid}")


@sio.event
async def join(sid, data):
    """Put the socket in its user room and its conversation rooms."""
    user_id = _extract_user_id(data)
    if not user_id:
        return {"ok": False, "error": "userId is required"}

    await sio.enter_room(sid, user_id)
    rooms = [user_id]

    if ObjectId.is_valid(user_id):
        conversations = get_collection(COLLECTIONS["conversations"]).find(
            {"participants": ObjectId(user_id)}, {"_id": 1}
        )
        for conversation in conversations:
            room = str(conversation["_id"])
            await sio.enter_room(sid, room)
            rooms.append(room)

    logger.info(f"[Socket] {sid} joined {len(rooms)} room(s) as user {user_id}")
    return {"ok": True, "rooms": rooms}


@sio.event
async def leave(sid, room):
    if isinstance(room, str) and room:
        await sio.leave_room(sid, room)


@sio.event
async def disconnect(sid):
    logger.info(f"[Socket] Client disconnected: {sid}")


async def emit(event: str, data: Any, rooms: Iterable[Any]) -> None:
    """
    Emit an event to each room once. Rooms may be ObjectIds or strings.

    Payloads are encoded first (ObjectId -> str, datetime -> ISO string).
    """
    payload = jsonable_encoder(serialize_doc(data))
    seen = set()
    for room in rooms:
        if room is None:
            continue
        room = str(room.get("_id")) if isinstance(room, dict) else str(room)
        if room in seen:
            continue
        seen.add(room)
        await sio.emit(event, payload, room=room)


async def add_user_to_room(user_id: str, room: str) -> None:
    """Join every connected socket of a user to a conversation room."""
    for sid, _ in list(sio.manager.get_participants("/", user_id)):
        await sio.enter_room(sid, room)
