from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from constants import (
    HISTORY_LIMIT,
    MESSAGE_STORE,
    MESSAGE_TTL,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
)
from errors import StorageUnavailable, ValidationError
from logging_config import get_logger
from redis_keys import REDIS_MESSAGES_KEY
from schemas.messages import ChatMessage

logger = get_logger(__name__)

REQUIRED_FIELDS = ("room", "username", "body")


def validate_message(message: ChatMessage):
    missing = [name for name in REQUIRED_FIELDS if not getattr(message, name, None)]
    if missing:
        raise ValidationError(missing)


class MessageStore(ABC):
    """Append-only message log, queryable by room.

    Subclasses implement `_write` and `_read`; validation, server timestamps
    and the `limit` boundary are handled here.
    """

    async def append(self, message: ChatMessage) -> ChatMessage:
        validate_message(message)
        now = datetime.now(timezone.utc)
        record = message.model_copy(update={"server_created_at": now, "server_updated_at": now})
        await self._write(record)
        logger.debug(f"Stored message from {record.username} in room {record.room}")
        return record

    async def history(self, room_name: str, limit: int = HISTORY_LIMIT) -> List[ChatMessage]:
        """Return up to `limit` most recent messages of a room, oldest first."""
        if limit is None or limit <= 0:
            return []
        messages = await self._read(room_name, limit)
        logger.debug(f"Loaded {len(messages)} messages for room {room_name}")
        return messages

    async def close(self):
        pass

    @abstractmethod
    async def _write(self, record: ChatMessage):
        ...

    @abstractmethod
    async def _read(self, room_name: str, limit: int) -> List[ChatMessage]:
        ...


class InMemoryMessageStore(MessageStore):
    """Process-local store, for development and tests."""

    def __init__(self):
        self._rooms: Dict[str, List[ChatMessage]] = {}

    async def _write(self, record: ChatMessage):
        self._rooms.setdefault(record.room, []).append(record)

    async def _read(self, room_name: str, limit: int) -> List[ChatMessage]:
        return list(self._rooms.get(room_name, [])[-limit:])


class RedisMessageStore(MessageStore):
    def __init__(self, redis_client: redis.Redis, ttl: int = MESSAGE_TTL):
        self.redis_client = redis_client
        self.ttl = ttl
        logger.info("Initializing RedisMessageStore")

    @classmethod
    def from_settings(cls, host: str = REDIS_HOST, port: int = REDIS_PORT, password: Optional[str] = REDIS_PASSWORD):
        client = redis.Redis(host=host, port=port, password=password, decode_responses=True)
        logger.info(f"Created Redis client for {host}:{port}")
        return cls(client)

    async def ping(self) -> bool:
        try:
            await self.redis_client.ping()
            return True
        except RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def _write(self, record: ChatMessage):
        key = REDIS_MESSAGES_KEY.format(slug=record.room)
        try:
            # Push and TTL succeed or fail together
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.rpush(key, record.model_dump_json())
                if self.ttl:
                    pipe.expire(key, self.ttl)
                await pipe.execute()
        except RedisError as e:
            raise StorageUnavailable(f"Failed to store message in room {record.room}: {e}") from e

    async def _read(self, room_name: str, limit: int) -> List[ChatMessage]:
        key = REDIS_MESSAGES_KEY.format(slug=room_name)
        try:
            raw_messages = await self.redis_client.lrange(key, -limit, -1)
        except RedisError as e:
            raise StorageUnavailable(f"Failed to load history for room {room_name}: {e}") from e
        messages = []
        for raw in raw_messages:
            try:
                messages.append(ChatMessage.model_validate_json(raw))
            except ValueError as e:
                logger.warning(f"Skipping unreadable message in {key}: {e}")
        return messages

    async def close(self):
        await self.redis_client.aclose()
        logger.debug("Closed Redis client")


def create_message_store(kind: str = MESSAGE_STORE) -> MessageStore:
    if kind == "memory":
        logger.info("Using in-memory message store")
        return InMemoryMessageStore()
    if kind == "redis":
        return RedisMessageStore.from_settings()
    raise ValueError(f"Unknown message store: {kind}")
