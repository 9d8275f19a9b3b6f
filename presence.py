from broadcaster import RoomBroadcaster
from logging_config import get_logger
from registry import ConnectionRegistry

logger = get_logger(__name__)

PRESENCE_EVENT = "user-count"


class PresenceTracker:
    """Publishes a room's live connection count, always read fresh from the registry."""

    def __init__(self, registry: ConnectionRegistry, broadcaster: RoomBroadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    def publish_count(self, room_name: str) -> int:
        count = self.registry.count_of(room_name)
        self.broadcaster.broadcast(room_name, PRESENCE_EVENT, count)
        logger.debug(f"Published user count {count} for room {room_name}")
        return count
