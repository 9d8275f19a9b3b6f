from pydantic import BaseModel
from typing import Optional


class RoomDetailsResponse(BaseModel):
    room: str
    online_count: int

class RoomHistoryMessage(BaseModel):
    room: str
    username: str
    message: str
    color: Optional[str] = None
    timestamp: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

class RoomHistoryResponse(BaseModel):
    room: str
    messages: list[RoomHistoryMessage]

class HealthResponse(BaseModel):
    status: str
    message: str
