"""Chat history models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """One message in the assistant conversation, as persisted."""

    role: ChatRole
    text: str
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the message was added (UTC)"
    )

    def to_storage(self) -> dict:
        return self.model_dump(mode="json")
