from contextlib import asynccontextmanager
from typing import Optional
import json
import os
import uuid

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError

from coordinator import ChatCoordinator
from logging_config import get_logger, setup_logging
from routers.rooms import health_router, rooms_router
from schemas.messages import InboundFrame
from store import MessageStore, RedisMessageStore, create_message_store

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


def create_app(message_store: Optional[MessageStore] = None) -> FastAPI:
    """Build the FastAPI app. The coordinator and its collaborators live for the lifespan of the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = message_store if message_store is not None else create_message_store()
        if isinstance(store, RedisMessageStore):
            if await store.ping():
                logger.info("Redis message store is reachable")
            else:
                logger.error("Redis message store is unreachable, messages will not be persisted until it recovers")
        app.state.coordinator = ChatCoordinator.create(store)
        logger.info("Chat coordinator started")
        try:
            yield
        finally:
            await app.state.coordinator.close()
            logger.info("Chat coordinator stopped")

    app = FastAPI(lifespan=lifespan)

    # Configure CORS to allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(rooms_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info("FastAPI application initialized")
    return app


async def websocket_endpoint(websocket: WebSocket):
    """Realtime chat socket.

    Frames in both directions are JSON objects of the form
    `{"event": "<name>", "data": <payload>}`.
    """
    coordinator: ChatCoordinator = websocket.app.state.coordinator
    connection_id = str(uuid.uuid4())

    await websocket.accept()
    await coordinator.connect(connection_id, websocket.send_text)

    try:
        message_count = 0
        while True:
            data = await websocket.receive_text()
            message_count += 1
            logger.debug(f"Received frame #{message_count} from connection {connection_id}")

            try:
                frame = InboundFrame.model_validate(json.loads(data))
            except (json.JSONDecodeError, PydanticValidationError) as e:
                logger.warning(f"Ignoring malformed frame from connection {connection_id}: {e}")
                continue

            # Frames of one connection are handled in arrival order
            await coordinator.handle(connection_id, frame.event, frame.data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        await coordinator.disconnect(connection_id)


app = create_app()
