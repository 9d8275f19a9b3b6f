"""Shared fixtures for relaychat tests."""

import json
import os

import pytest

from coordinator import ChatCoordinator
from store import InMemoryMessageStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class RecordingConnection:
    """Stands in for a socket: decodes and keeps every frame it is sent."""

    def __init__(self, connection_id: str, fail: bool = False) -> None:
        self.connection_id = connection_id
        self.fail = fail
        self.frames: list[dict] = []

    async def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionResetError(f"{self.connection_id} is gone")
        self.frames.append(json.loads(text))

    def events(self, name: str) -> list:
        return [frame["data"] for frame in self.frames if frame["event"] == name]

    def names(self) -> list[str]:
        return [frame["event"] for frame in self.frames]


@pytest.fixture
def make_connection():
    def factory(connection_id: str, fail: bool = False) -> RecordingConnection:
        return RecordingConnection(connection_id, fail=fail)

    return factory


@pytest.fixture
async def coordinator():
    chat = ChatCoordinator.create(InMemoryMessageStore())
    try:
        yield chat
    finally:
        await chat.close()


@pytest.fixture(scope="session")
def redis_url():
    """Redis for store tests: REDIS_URL if set, otherwise a testcontainers Redis."""
    if os.environ.get("REDIS_URL"):
        yield os.environ["REDIS_URL"]
        return

    # Disable Ryuk for podman compatibility
    os.environ.setdefault("TESTCONTAINERS_RYUK_DISABLED", "true")

    try:
        from testcontainers.redis import RedisContainer

        container = RedisContainer()
        container.start()
    except Exception as e:
        pytest.skip(f"Redis is not available: {e}")

    try:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(6379)
        yield f"redis://{host}:{port}"
    finally:
        container.stop()
