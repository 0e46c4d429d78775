"""Callback and lead capture request models."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class LeadKind(str, Enum):
    CONTACT = "contact"
    SAMPLE = "sample"


class TimeSlot(BaseModel):
    """A callback window offered to the visitor."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str


TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot(label="Morning (9am - 12pm)", value="morning"),
    TimeSlot(label="Afternoon (1pm - 5pm)", value="afternoon"),
)


class CallbackRequest(BaseModel):
    """Completed callback details, only built once every field is collected."""

    name: str
    phone_number: str
    enquiry_text: str
    callback_date: date
    time_slot: str


class LeadFormInput(BaseModel):
    """Raw values typed into a lead capture form."""

    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    @field_validator("name", "email", "phone", "address", mode="before")
    @classmethod
    def _blank_if_missing(cls, value):
        return "" if value is None else value


class LeadCaptureRequest(BaseModel):
    """Contact or sample request ready to be handed to the assistant."""

    kind: LeadKind
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    context: str
