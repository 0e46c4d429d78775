"""Chat log, exchange, and widget event models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"


class ChatMessage(BaseModel):
    """A single rendered entry in the widget's message log."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    text: str


class ExchangeContext(BaseModel):
    """Caller metadata attached to a conversation when it is first recorded."""

    user_email: Optional[str] = None
    channel: Optional[str] = None
    start_url: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[str] = None


class ExchangeResult(BaseModel):
    """Outcome of one utterance sent through the assistant."""

    replies: list[str] = Field(default_factory=list)
    thread_id: str
    conversation_id: str


class WidgetEvent(BaseModel):
    """Analytics event emitted by the flow controller."""

    event_type: str
    details: dict[str, Any] = Field(default_factory=dict)
    conversation_id: Optional[str] = None
    thread_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
