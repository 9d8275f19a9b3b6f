from fastapi import APIRouter, HTTPException, Query, Request

from constants import HISTORY_LIMIT
from coordinator import ChatCoordinator, room_or_default
from errors import StorageUnavailable
from logging_config import get_logger
from schemas.rooms import HealthResponse, RoomDetailsResponse, RoomHistoryResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])
health_router = APIRouter(prefix="/api", tags=["health"])


def get_coordinator(request: Request) -> ChatCoordinator:
    return request.app.state.coordinator


@health_router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="OK", message="Server is running")


@rooms_router.get("/{room}", response_model=RoomDetailsResponse)
async def get_room_details(room: str, request: Request):
    """Live number of connections joined to a room (0 for an unknown room)."""
    room = room_or_default(room)
    online_count = get_coordinator(request).registry.count_of(room)
    logger.debug(f"Room details for {room}: {online_count} online")
    return RoomDetailsResponse(room=room, online_count=online_count)


@rooms_router.get("/{room}/messages", response_model=RoomHistoryResponse)
async def get_room_messages(
    room: str,
    request: Request,
    limit: int = Query(HISTORY_LIMIT, ge=0, le=1000, description="Maximum number of most recent messages"),
):
    """Stored history of a room, oldest first."""
    room = room_or_default(room)
    try:
        messages = await get_coordinator(request).store.history(room, limit)
    except StorageUnavailable as e:
        logger.error(f"Error loading history for room {room}: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="Message storage unavailable")
    return RoomHistoryResponse(room=room, messages=[message.to_payload() for message in messages])
