"""
Finite state machine for the guided chat widget.

Defines the 12 widget modes and the explicit transitions between them.
INITIAL is the only entry mode; FREE_CHAT is the stable mode every
guided flow returns to. There is no terminal mode: the session lives
until the widget is closed.

Usage:
    sm = ConversationStateMachine()
    sm.transition(FlowTrigger.CALLBACK_STARTED)
    assert sm.current_mode == ConversationMode.CALLBACK_NAME
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ConversationMode(str, Enum):
    """All modes the widget can be in. Exactly one is active."""
    INITIAL = "INITIAL"
    CALLBACK_NAME = "CALLBACK_NAME"
    CALLBACK_PHONE = "CALLBACK_PHONE"
    CALLBACK_ENQUIRY = "CALLBACK_ENQUIRY"
    CALLBACK_DATETIME = "CALLBACK_DATETIME"
    CALLBACK_TIME = "CALLBACK_TIME"
    ENQUIRY_CATEGORY = "ENQUIRY_CATEGORY"
    ENQUIRY_SUBCATEGORY = "ENQUIRY_SUBCATEGORY"
    ENQUIRY_RESOURCE = "ENQUIRY_RESOURCE"
    LEAD_CAPTURE_CONTACT_FORM = "LEAD_CAPTURE_CONTACT_FORM"
    LEAD_CAPTURE_SAMPLE_FORM = "LEAD_CAPTURE_SAMPLE_FORM"
    FREE_CHAT = "FREE_CHAT"


class FlowTrigger(str, Enum):
    """Events that cause mode transitions."""
    CALLBACK_STARTED = "callback_started"
    NAME_ACCEPTED = "name_accepted"
    PHONE_ACCEPTED = "phone_accepted"
    ENQUIRY_ACCEPTED = "enquiry_accepted"
    DATE_ACCEPTED = "date_accepted"
    CALLBACK_FINALIZED = "callback_finalized"
    ENQUIRY_STARTED = "enquiry_started"
    CATEGORY_SELECTED = "category_selected"
    CATEGORY_EMPTY = "category_empty"
    SUBCATEGORY_SELECTED = "subcategory_selected"
    LINK_OPENED = "link_opened"
    CONTACT_FORM_REQUESTED = "contact_form_requested"
    SAMPLE_FORM_REQUESTED = "sample_form_requested"
    MORE_INFO_REQUESTED = "more_info_requested"
    LEAD_SUBMITTED = "lead_submitted"
    FREE_CHAT_STARTED = "free_chat_started"


@dataclass
class Transition:
    """A single valid mode transition."""
    from_mode: ConversationMode
    to_mode: ConversationMode
    trigger: FlowTrigger


@dataclass
class ModeEntry:
    """Recorded history entry for a mode visit."""
    mode: ConversationMode
    entered_at: datetime
    trigger: Optional[FlowTrigger] = None
    reset_reason: Optional[str] = None


class InvalidTransitionError(Exception):
    """Raised when a trigger is not valid from the current mode."""


class ConversationStateMachine:
    """
    Deterministic mode graph for the widget.

    Every transition is listed explicitly. Anything else is rejected with
    an error naming the triggers that are allowed from the current mode;
    the controller treats that as an internal inconsistency and resets.
    """

    TRANSITIONS: list[Transition] = [
        # --- Entry choices ---
        Transition(ConversationMode.INITIAL, ConversationMode.CALLBACK_NAME,
                   FlowTrigger.CALLBACK_STARTED),
        Transition(ConversationMode.INITIAL, ConversationMode.ENQUIRY_CATEGORY,
                   FlowTrigger.ENQUIRY_STARTED),
        Transition(ConversationMode.INITIAL, ConversationMode.FREE_CHAT,
                   FlowTrigger.FREE_CHAT_STARTED),

        # --- Callback flow ---
        Transition(ConversationMode.CALLBACK_NAME, ConversationMode.CALLBACK_PHONE,
                   FlowTrigger.NAME_ACCEPTED),
        Transition(ConversationMode.CALLBACK_PHONE, ConversationMode.CALLBACK_ENQUIRY,
                   FlowTrigger.PHONE_ACCEPTED),
        Transition(ConversationMode.CALLBACK_ENQUIRY, ConversationMode.CALLBACK_DATETIME,
                   FlowTrigger.ENQUIRY_ACCEPTED),
        Transition(ConversationMode.CALLBACK_DATETIME, ConversationMode.CALLBACK_TIME,
                   FlowTrigger.DATE_ACCEPTED),
        Transition(ConversationMode.CALLBACK_TIME, ConversationMode.FREE_CHAT,
                   FlowTrigger.CALLBACK_FINALIZED),

        # --- Product enquiry ---
        Transition(ConversationMode.ENQUIRY_CATEGORY, ConversationMode.ENQUIRY_SUBCATEGORY,
                   FlowTrigger.CATEGORY_SELECTED),
        Transition(ConversationMode.ENQUIRY_CATEGORY, ConversationMode.FREE_CHAT,
                   FlowTrigger.CATEGORY_EMPTY),
        Transition(ConversationMode.ENQUIRY_SUBCATEGORY, ConversationMode.ENQUIRY_RESOURCE,
                   FlowTrigger.SUBCATEGORY_SELECTED),
        Transition(ConversationMode.ENQUIRY_RESOURCE, ConversationMode.FREE_CHAT,
                   FlowTrigger.LINK_OPENED),
        Transition(ConversationMode.ENQUIRY_RESOURCE, ConversationMode.FREE_CHAT,
                   FlowTrigger.MORE_INFO_REQUESTED),
        Transition(ConversationMode.ENQUIRY_RESOURCE, ConversationMode.LEAD_CAPTURE_CONTACT_FORM,
                   FlowTrigger.CONTACT_FORM_REQUESTED),
        Transition(ConversationMode.ENQUIRY_RESOURCE, ConversationMode.LEAD_CAPTURE_SAMPLE_FORM,
                   FlowTrigger.SAMPLE_FORM_REQUESTED),

        # --- Lead capture forms ---
        Transition(ConversationMode.LEAD_CAPTURE_CONTACT_FORM, ConversationMode.FREE_CHAT,
                   FlowTrigger.LEAD_SUBMITTED),
        Transition(ConversationMode.LEAD_CAPTURE_SAMPLE_FORM, ConversationMode.FREE_CHAT,
                   FlowTrigger.LEAD_SUBMITTED),
    ]

    def __init__(self) -> None:
        self._current_mode = ConversationMode.INITIAL
        self._history: list[ModeEntry] = [
            ModeEntry(mode=ConversationMode.INITIAL, entered_at=datetime.now(timezone.utc))
        ]
        self._reset_count: int = 0

    @property
    def current_mode(self) -> ConversationMode:
        return self._current_mode

    @property
    def reset_count(self) -> int:
        return self._reset_count

    def can_fire(self, trigger: FlowTrigger) -> bool:
        """Check whether a trigger is valid from the current mode."""
        return trigger in self.get_valid_triggers()

    def transition(self, trigger: FlowTrigger) -> ConversationMode:
        """
        Execute a mode transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new conversation mode.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_mode == self._current_mode and t.trigger == trigger:
                old_mode = self._current_mode
                self._current_mode = t.to_mode
                self._history.append(ModeEntry(
                    mode=self._current_mode,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Mode transition: %s -> %s (trigger: %s)",
                    old_mode.value, self._current_mode.value, trigger.value,
                )
                return self._current_mode

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_mode.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def reset(self, reason: str) -> ConversationMode:
        """Fail closed back to INITIAL after an internal inconsistency."""
        logger.warning(
            "Resetting mode %s -> INITIAL: %s", self._current_mode.value, reason
        )
        self._current_mode = ConversationMode.INITIAL
        self._history.append(ModeEntry(
            mode=ConversationMode.INITIAL,
            entered_at=datetime.now(timezone.utc),
            reset_reason=reason,
        ))
        self._reset_count += 1
        return self._current_mode

    def get_valid_triggers(self) -> list[FlowTrigger]:
        """Return all triggers valid from the current mode."""
        return [t.trigger for t in self.TRANSITIONS if t.from_mode == self._current_mode]

    def get_history(self) -> list[ModeEntry]:
        """Return the full mode transition history."""
        return list(self._history)

    def get_mode_trace(self) -> list[str]:
        """Return ordered list of mode names visited."""
        return [entry.mode.value for entry in self._history]
