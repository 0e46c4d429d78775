"""Widget configuration, geolocation, and persisted record models."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


class WidgetConfig(BaseModel):
    """Theme, greeting, and gating options for one embedded widget."""

    theme_color: str
    initial_message: str
    require_email_first: bool = False


FALLBACK_WIDGET_CONFIG = WidgetConfig(
    theme_color="#dc2626",
    initial_message="Sorry, could not load settings. How can I help?",
    require_email_first=False,
)


class GeoLocation(BaseModel):
    country_code: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def unknown(cls) -> "GeoLocation":
        return cls()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationRecord(BaseModel):
    """Durable conversation row, one per assistant thread."""

    id: str
    thread_id: str
    channel: Optional[str] = None
    start_url: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime = Field(default_factory=_utcnow)


class MessageRecord(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    run_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime = Field(default_factory=_utcnow)


class LeadRecord(BaseModel):
    """Captured prospect, from a lead form or a scheduled callback."""

    id: str
    conversation_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    interest: Optional[str] = None
    enquiry_matter: Optional[str] = None
    callback_date: Optional[str] = None
    callback_time_slot: Optional[str] = None
    status: str = "new"
    user_id: Optional[str] = None
    raw_data: Optional[dict[str, Any]] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
