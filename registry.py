from typing import Dict, Set

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionRegistry:
    """Authoritative room -> connection id membership for this process.

    All methods are synchronous and never await, so a mutation is atomic
    with respect to the event loop.
    """

    def __init__(self):
        # Format: {room_name: {connection_id, ...}}
        self._rooms: Dict[str, Set[str]] = {}
        # Format: {connection_id: {room_name, ...}}
        self._memberships: Dict[str, Set[str]] = {}

    def join(self, connection_id: str, room_name: str) -> bool:
        """Add a connection to a room. Returns False if it was already a member."""
        members = self._rooms.setdefault(room_name, set())
        if connection_id in members:
            logger.debug(f"Connection {connection_id} already in room {room_name}")
            return False
        members.add(connection_id)
        self._memberships.setdefault(connection_id, set()).add(room_name)
        logger.debug(f"Added connection {connection_id} to room {room_name} (members: {len(members)})")
        return True

    def leave(self, connection_id: str, room_name: str) -> bool:
        """Remove a connection from a single room. Returns False if it was not a member."""
        members = self._rooms.get(room_name)
        if not members or connection_id not in members:
            return False
        members.discard(connection_id)
        if not members:
            del self._rooms[room_name]
        rooms = self._memberships.get(connection_id)
        if rooms is not None:
            rooms.discard(room_name)
            if not rooms:
                del self._memberships[connection_id]
        logger.debug(f"Removed connection {connection_id} from room {room_name}")
        return True

    def leave_all(self, connection_id: str) -> Set[str]:
        """Remove a connection from every room and return the rooms it left."""
        rooms = self._memberships.pop(connection_id, set())
        for room_name in rooms:
            members = self._rooms.get(room_name)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._rooms[room_name]
                logger.debug(f"Room {room_name} is now empty")
        return rooms

    def count_of(self, room_name: str) -> int:
        return len(self._rooms.get(room_name, ()))

    def members(self, room_name: str) -> Set[str]:
        # Copy, callers iterate while the registry may change
        return set(self._rooms.get(room_name, ()))

    def rooms_of(self, connection_id: str) -> Set[str]:
        return set(self._memberships.get(connection_id, ()))

    def rooms(self) -> Set[str]:
        return set(self._rooms)
