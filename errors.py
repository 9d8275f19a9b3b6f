"""Error taxonomy of the chat relay."""
from typing import Iterable


class ChatError(Exception):
    """Base class for errors raised by the chat core."""


class ValidationError(ChatError):
    """A message or inbound event is missing required fields."""

    def __init__(self, fields: Iterable[str], message: str = None):
        self.fields = list(fields)
        super().__init__(message or f"Missing or empty required field(s): {', '.join(self.fields)}")


class StorageUnavailable(ChatError):
    """The persistence layer could not complete a read or write."""


class DeliveryFailure(ChatError):
    """A single connection could not be handed a frame."""

    def __init__(self, connection_id: str, reason: str = "connection is gone"):
        self.connection_id = connection_id
        super().__init__(f"Cannot deliver to connection {connection_id}: {reason}")
