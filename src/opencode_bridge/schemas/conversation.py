"""Conversation history records returned by the conversation logger."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"


class ConversationMessageDTO(BaseModel):
    """A persisted user or assistant message."""

    id: str
    channel_id: str
    role: MessageRole
    sender_name: str | None = None
    sender_id: str | None = None
    content: str
    # The ORM attribute is `metadata_` because `metadata` collides with the
    # declarative Base.metadata attribute.
    metadata: dict[str, Any] | None = Field(default=None, alias="metadata_")
    created_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}


class CompactionSummaryDTO(BaseModel):
    id: str
    channel_id: str
    summary: str
    turns_covered: int
    created_at: datetime

    model_config = {"from_attributes": True}
