"""Room-scoped chat coordination.

The coordinator turns inbound connection events into registry changes,
store calls and broadcasts. Each handler isolates its own failures: one
bad event from one connection never reaches another connection's session.
"""
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from broadcaster import RoomBroadcaster, SendText
from constants import BROADCAST_ON_PERSIST_FAILURE, DEFAULT_ROOM, HISTORY_LIMIT
from errors import StorageUnavailable, ValidationError
from logging_config import get_logger
from presence import PresenceTracker
from registry import ConnectionRegistry
from schemas.messages import SendMessageEvent, TypingEvent
from store import MessageStore

logger = get_logger(__name__)

# Outbound event names
HISTORY_EVENT = "chat-history"
MESSAGE_EVENT = "message"
TYPING_EVENT = "user-typing"
STOP_TYPING_EVENT = "user-stop-typing"


def room_or_default(room_name: Any) -> str:
    if isinstance(room_name, dict):
        room_name = room_name.get("room")
    if isinstance(room_name, str) and room_name.strip():
        return room_name.strip()
    return DEFAULT_ROOM


class ChatCoordinator:
    def __init__(
        self,
        registry: ConnectionRegistry,
        broadcaster: RoomBroadcaster,
        presence: PresenceTracker,
        store: MessageStore,
        history_limit: int = HISTORY_LIMIT,
        broadcast_on_persist_failure: bool = BROADCAST_ON_PERSIST_FAILURE,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.presence = presence
        self.store = store
        self.history_limit = history_limit
        self.broadcast_on_persist_failure = broadcast_on_persist_failure
        self._connected: Set[str] = set()
        self._handlers: Dict[str, Callable[[str, Any], Awaitable[None]]] = {
            "join-room": self.join,
            "leave-room": self.leave,
            "send-message": self.send,
            "typing": self.typing,
            "stop-typing": self.stop_typing,
        }

    @classmethod
    def create(cls, store: MessageStore, **kwargs) -> "ChatCoordinator":
        """Build a coordinator with a fresh registry, broadcaster and presence tracker."""
        registry = ConnectionRegistry()
        broadcaster = RoomBroadcaster(registry)
        presence = PresenceTracker(registry, broadcaster)
        return cls(registry, broadcaster, presence, store, **kwargs)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connected

    async def connect(self, connection_id: str, send: SendText):
        self._connected.add(connection_id)
        self.broadcaster.attach(connection_id, send)
        logger.info(f"Connection {connection_id} connected ({len(self._connected)} connected)")

    async def disconnect(self, connection_id: str):
        if connection_id not in self._connected:
            return
        self._connected.discard(connection_id)
        await self.broadcaster.detach(connection_id)
        rooms = self.registry.leave_all(connection_id)
        for room_name in sorted(rooms):
            self.presence.publish_count(room_name)
        logger.info(f"Connection {connection_id} disconnected, left {len(rooms)} room(s)")

    async def handle(self, connection_id: str, event_name: str, data: Any = None):
        """Dispatch one inbound event. Never raises."""
        handler = self._handlers.get(event_name)
        if handler is None:
            logger.warning(f"Ignoring unknown event '{event_name}' from connection {connection_id}")
            return
        if connection_id not in self._connected:
            logger.warning(f"Ignoring '{event_name}' from unknown connection {connection_id}")
            return
        try:
            await handler(connection_id, data)
        except ValidationError as e:
            logger.warning(f"Rejected '{event_name}' from connection {connection_id}: {e}")
        except Exception as e:
            logger.error(f"Error handling '{event_name}' from connection {connection_id}: {e}", exc_info=True)

    async def join(self, connection_id: str, room_name: Optional[str] = None):
        room_name = room_or_default(room_name)
        self.registry.join(connection_id, room_name)
        logger.info(f"Connection {connection_id} joined room {room_name}")

        try:
            messages = await self.store.history(room_name, self.history_limit)
        except StorageUnavailable as e:
            logger.error(f"Could not load history for room {room_name}: {e}", exc_info=True)
        else:
            self.broadcaster.send_to(connection_id, HISTORY_EVENT, [message.to_payload() for message in messages])

        self.presence.publish_count(room_name)

    async def leave(self, connection_id: str, room_name: Optional[str] = None):
        room_name = room_or_default(room_name)
        if self.registry.leave(connection_id, room_name):
            logger.info(f"Connection {connection_id} left room {room_name}")
            self.presence.publish_count(room_name)

    async def send(self, connection_id: str, data: Any):
        event = self._parse(SendMessageEvent, data)
        event.room = room_or_default(event.room)
        message = event.to_chat_message()

        try:
            await self.store.append(message)
        except StorageUnavailable as e:
            logger.error(f"Failed to persist message from {message.username} in room {message.room}: {e}", exc_info=True)
            if not self.broadcast_on_persist_failure:
                return

        self.broadcaster.broadcast(event.room, MESSAGE_EVENT, event.model_dump())

    async def typing(self, connection_id: str, data: Any):
        self._relay_typing(connection_id, TYPING_EVENT, data)

    async def stop_typing(self, connection_id: str, data: Any):
        self._relay_typing(connection_id, STOP_TYPING_EVENT, data)

    def _relay_typing(self, connection_id: str, event_name: str, data: Any):
        event = self._parse(TypingEvent, data)
        event.room = room_or_default(event.room)
        self.broadcaster.broadcast(event.room, event_name, event.model_dump(), exclude_connection_id=connection_id)

    def _parse(self, model, data: Any):
        if not isinstance(data, dict):
            raise ValidationError(["data"], f"Expected an object payload, got {type(data).__name__}")
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
            raise ValidationError(fields, str(e)) from e

    async def close(self):
        for connection_id in list(self._connected):
            await self.disconnect(connection_id)
        await self.broadcaster.close()
        await self.store.close()
