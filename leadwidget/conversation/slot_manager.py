"""
Callback slot collection: name -> phone -> enquiry -> date -> time slot.

Each slot is validated as it is submitted. Partial state stays here, in
memory, until the final time slot is chosen and a CallbackRequest can be
built. Nothing is persisted before that point.

Usage:
    slots = CallbackSlots()
    ok, msg = slots.set_slot("name", "Jane Doe")
    if slots.ready_for_time_slot():
        slots.set_slot("time_slot", "morning")
        request = slots.to_request()
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional

from leadwidget.schemas.lead_schema import CallbackRequest
from leadwidget.utils import is_valid_phone

logger = logging.getLogger(__name__)


class SlotStatus(str, Enum):
    """Lifecycle status of a slot value."""

    EMPTY = "empty"
    VALIDATED = "validated"


def _check_name(value: str) -> Optional[str]:
    if not value.strip():
        return "Name cannot be empty."
    return None


def _check_phone(value: str) -> Optional[str]:
    if not value.strip():
        return "Phone number cannot be empty."
    if not is_valid_phone(value):
        return "Please enter a valid phone number."
    return None


def _check_enquiry(value: str) -> Optional[str]:
    if not value.strip():
        return "Please provide a reason for the call."
    return None


def _check_time_slot(value: str) -> Optional[str]:
    if not value.strip():
        return "Please choose a time slot."
    return None


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single callback field."""

    name: str
    display_name: str
    check: Optional[Callable[[str], Optional[str]]] = None


@dataclass
class SlotValue:
    """Current state of a collected slot."""

    value: Any = None
    status: SlotStatus = SlotStatus.EMPTY
    attempts: int = 0
    rejected: list[str] = field(default_factory=list)


class CallbackSlots:
    """
    Holds the in-progress callback request.

    The date slot is checked against ``today`` (injectable for tests) so
    only today or a future day is accepted.
    """

    SLOT_DEFINITIONS: list[SlotDefinition] = [
        SlotDefinition(name="name", display_name="name", check=_check_name),
        SlotDefinition(name="phone_number", display_name="phone number", check=_check_phone),
        SlotDefinition(name="enquiry", display_name="enquiry", check=_check_enquiry),
        SlotDefinition(name="date", display_name="date"),
        SlotDefinition(name="time_slot", display_name="time slot", check=_check_time_slot),
    ]

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today
        self.slots: dict[str, SlotValue] = {
            defn.name: SlotValue() for defn in self.SLOT_DEFINITIONS
        }

    def _get_definition(self, name: str) -> SlotDefinition:
        for defn in self.SLOT_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown slot: {name}")

    def set_slot(self, name: str, raw_value: str) -> tuple[bool, str]:
        """
        Validate and store a text slot.

        Returns:
            (success, message). On failure the message is the field error.
        """
        defn = self._get_definition(name)
        if name == "date":
            raise ValueError("Use set_date() for the date slot")
        slot = self.slots[name]
        slot.attempts += 1

        error = defn.check(raw_value) if defn.check else None
        if error:
            slot.rejected.append(raw_value)
            logger.debug("Slot '%s' rejected: %r", name, raw_value)
            return False, error

        slot.value = raw_value.strip()
        slot.status = SlotStatus.VALIDATED
        logger.debug("Slot '%s' set", name)
        return True, f"Got {defn.display_name}: {slot.value}"

    def set_date(self, value: date) -> tuple[bool, str]:
        """Store the callback date if it is today or later.

        A datetime is reduced to its date; anything else is rejected.
        """
        slot = self.slots["date"]
        slot.attempts += 1
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            slot.rejected.append(repr(value))
            return False, "Please choose a valid date."
        if value < self._today():
            slot.rejected.append(value.isoformat())
            return False, "Please choose today or a future date."
        slot.value = value
        slot.status = SlotStatus.VALIDATED
        return True, f"Got date: {value.isoformat()}"

    def get_slot_value(self, name: str) -> Any:
        return self.slots[name].value

    def is_filled(self, name: str) -> bool:
        return self.slots[name].status == SlotStatus.VALIDATED

    def get_missing_slots(self) -> list[SlotDefinition]:
        return [d for d in self.SLOT_DEFINITIONS if not self.is_filled(d.name)]

    def ready_for_date(self) -> bool:
        """Name, phone, and enquiry must be held before a date is asked for."""
        return all(self.is_filled(n) for n in ("name", "phone_number", "enquiry"))

    def ready_for_time_slot(self) -> bool:
        """All four fields before the time slot must be held."""
        return self.ready_for_date() and self.is_filled("date")

    def all_filled(self) -> bool:
        return not self.get_missing_slots()

    def to_request(self) -> CallbackRequest:
        """Build the finished request.

        Raises:
            ValueError: If any of the five fields is still missing.
        """
        missing = [d.display_name for d in self.get_missing_slots()]
        if missing:
            raise ValueError(f"Callback request incomplete, missing: {', '.join(missing)}")
        return CallbackRequest(
            name=self.get_slot_value("name"),
            phone_number=self.get_slot_value("phone_number"),
            enquiry_text=self.get_slot_value("enquiry"),
            callback_date=self.get_slot_value("date"),
            time_slot=self.get_slot_value("time_slot"),
        )

    def clear(self) -> None:
        """Drop every collected value."""
        for name in self.slots:
            self.slots[name] = SlotValue()

    def get_stats(self) -> dict[str, Any]:
        """Collection statistics, useful when reviewing abandoned flows."""
        total_attempts = sum(s.attempts for s in self.slots.values())
        rejections = sum(len(s.rejected) for s in self.slots.values())
        filled = sum(1 for d in self.SLOT_DEFINITIONS if self.is_filled(d.name))
        required = len(self.SLOT_DEFINITIONS)
        return {
            "total_attempts": total_attempts,
            "total_rejections": rejections,
            "slots_filled": filled,
            "slots_required": required,
            "fill_rate": filled / required,
        }
