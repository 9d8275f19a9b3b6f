from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from constants import DEFAULT_ROOM


class ChatMessage(BaseModel):
    room: str
    username: str
    body: str
    color: Optional[str] = None
    client_timestamp: Optional[str] = None
    server_created_at: Optional[datetime] = None
    server_updated_at: Optional[datetime] = None

    def to_payload(self) -> dict:
        """Render the message in the shape clients receive in `chat-history`."""
        return {
            "room": self.room,
            "username": self.username,
            "message": self.body,
            "color": self.color,
            "timestamp": self.client_timestamp,
            "createdAt": self.server_created_at.isoformat() if self.server_created_at else None,
            "updatedAt": self.server_updated_at.isoformat() if self.server_updated_at else None,
        }


class SendMessageEvent(BaseModel):
    # Unknown client fields are echoed back with the message
    model_config = ConfigDict(extra="allow")

    room: Optional[str] = DEFAULT_ROOM
    username: Optional[str] = None
    message: Optional[str] = None
    color: Optional[str] = None
    timestamp: Optional[str] = None

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(
            room=self.room or "",
            username=self.username or "",
            body=self.message or "",
            color=self.color,
            client_timestamp=self.timestamp,
        )


class TypingEvent(BaseModel):
    # Extra fields (username, color...) are relayed untouched
    model_config = ConfigDict(extra="allow")

    room: Optional[str] = DEFAULT_ROOM


class InboundFrame(BaseModel):
    event: str
    data: Any = None
