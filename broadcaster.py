"""Per-room fan-out of outbound events.

Every attached connection owns an outbox: a FIFO queue drained by its own
writer task. `broadcast` and `send_to` only enqueue, so frames reach each
connection in exactly the order the calls were made.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

from errors import DeliveryFailure
from logging_config import get_logger
from registry import ConnectionRegistry

logger = get_logger(__name__)

SendText = Callable[[str], Awaitable[None]]


def encode_frame(event_name: str, payload: Any) -> str:
    return json.dumps({"event": event_name, "data": payload}, default=str)


class ConnectionOutbox:
    def __init__(self, connection_id: str, send: SendText):
        self.connection_id = connection_id
        self._send = send
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def put(self, frame: str):
        if self.closed:
            raise DeliveryFailure(self.connection_id, "outbox is closed")
        self._queue.put_nowait(frame)

    async def run(self):
        """Writer loop. A failed send closes the outbox; the rest of the queue is discarded."""
        while True:
            frame = await self._queue.get()
            try:
                if not self.closed:
                    await self._send(frame)
            except Exception as e:
                self.closed = True
                logger.debug(f"Send to connection {self.connection_id} failed, closing outbox: {e}")
            finally:
                self._queue.task_done()

    async def drain(self):
        await self._queue.join()


class RoomBroadcaster:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self._outboxes: Dict[str, ConnectionOutbox] = {}
        self._writers: Dict[str, asyncio.Task] = {}

    def attach(self, connection_id: str, send: SendText) -> ConnectionOutbox:
        """Start delivering frames for a connection through `send`."""
        outbox = ConnectionOutbox(connection_id, send)
        self._outboxes[connection_id] = outbox
        self._writers[connection_id] = asyncio.create_task(outbox.run())
        logger.debug(f"Attached outbox for connection {connection_id}")
        return outbox

    async def detach(self, connection_id: str):
        """Stop delivering to a connection. Frames still queued are dropped."""
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is not None:
            outbox.closed = True
        writer = self._writers.pop(connection_id, None)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        logger.debug(f"Detached outbox for connection {connection_id}")

    def is_attached(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def send_to(self, connection_id: str, event_name: str, payload: Any) -> bool:
        """Queue an event for one connection. Returns False if it could not be queued."""
        return self._deliver(connection_id, encode_frame(event_name, payload))

    def broadcast(self, room_name: str, event_name: str, payload: Any, exclude_connection_id: Optional[str] = None) -> int:
        """Queue an event for every connection in a room. Returns the number of connections reached."""
        frame = encode_frame(event_name, payload)
        delivered = 0
        for connection_id in self.registry.members(room_name):
            if connection_id == exclude_connection_id:
                continue
            if self._deliver(connection_id, frame):
                delivered += 1
        logger.debug(f"Broadcast '{event_name}' to {delivered} connections in room {room_name}")
        return delivered

    def _deliver(self, connection_id: str, frame: str) -> bool:
        try:
            outbox = self._outboxes.get(connection_id)
            if outbox is None:
                raise DeliveryFailure(connection_id)
            outbox.put(frame)
            return True
        except DeliveryFailure as e:
            logger.debug(f"Skipping delivery: {e}")
            return False

    async def drain(self):
        """Wait until every attached connection has been handed its queued frames."""
        for outbox in list(self._outboxes.values()):
            await outbox.drain()

    async def close(self):
        for connection_id in list(self._outboxes):
            await self.detach(connection_id)
