"""
Conversation flow controller for the guided chat widget.

Owns the active mode, the visible message log, and the in-progress
callback and lead-capture fields. Each public method is one UI action;
it either transitions locally, sends an utterance through the exchange
client, or both.

Rules every action follows:
- nothing happens while an exchange is in flight (``busy``) or while the
  contact gate is up, apart from submitting the email;
- mode changes go through ConversationStateMachine, and an action that
  is not valid in the current mode resets the widget to INITIAL;
- the message log only ever grows, including on failed exchanges;
- analytics events are handed to the sink and never awaited.
"""

import logging
from datetime import date
from typing import Callable, Optional, Union

from pydantic import ValidationError

from leadwidget.assistant.orchestrator import ExchangeClient, ExchangeError
from leadwidget.config import settings
from leadwidget.conversation.slot_manager import CallbackSlots
from leadwidget.conversation.state_machine import (
    ConversationMode,
    ConversationStateMachine,
    FlowTrigger,
)
from leadwidget.conversation.views import ViewState, WidgetView, build_view
from leadwidget.integrations.events import EventSink
from leadwidget.integrations.session_store import SessionStore
from leadwidget.integrations.widget_config import WidgetConfigError, WidgetConfigService
from leadwidget.schemas.chat_schema import (
    ChatMessage,
    ExchangeContext,
    ExchangeResult,
    MessageRole,
    WidgetEvent,
)
from leadwidget.schemas.lead_schema import (
    TIME_SLOTS,
    LeadCaptureRequest,
    LeadFormInput,
    LeadKind,
    TimeSlot,
)
from leadwidget.schemas.widget_schema import FALLBACK_WIDGET_CONFIG, WidgetConfig
from leadwidget.tools.catalog import (
    DEFAULT_CATALOG,
    URL_RESOURCE_TYPES,
    Category,
    ProductCatalog,
    Resource,
    ResourceType,
    Subcategory,
)
from leadwidget.utils import format_long_date, is_valid_email

logger = logging.getLogger(__name__)

CALLBACK_INITIATION_MESSAGE = "User initiated callback flow"
CALLBACK_START_PROMPT = "Okay, let's arrange a callback. Could I get your name, please?"
CALLBACK_START_FAILED = "Could not start callback flow. Please try again."
CALLBACK_DETAILS_MISSING = (
    "Internal error: Missing some callback details before sending final confirmation."
)
ENQUIRY_START_PROMPT = "Okay, I can help with that. Which product category are you interested in?"
GENERIC_RESET_NOTICE = "Something went wrong, so we've started again. How can I help?"
UNKNOWN_ERROR_TEXT = "An unknown error occurred."

FORM_TRIGGERS: dict[ResourceType, FlowTrigger] = {
    ResourceType.LEAD_CAPTURE_CONTACT: FlowTrigger.CONTACT_FORM_REQUESTED,
    ResourceType.LEAD_CAPTURE_SAMPLE: FlowTrigger.SAMPLE_FORM_REQUESTED,
}

FORM_REPLIES: dict[ResourceType, str] = {
    ResourceType.LEAD_CAPTURE_CONTACT: (
        "Okay, I can help with that. Please provide your contact details below."
    ),
    ResourceType.LEAD_CAPTURE_SAMPLE: (
        "Okay, I can help request a sample. Please provide your details and delivery address below."
    ),
}

FORM_MODES: dict[LeadKind, ConversationMode] = {
    LeadKind.CONTACT: ConversationMode.LEAD_CAPTURE_CONTACT_FORM,
    LeadKind.SAMPLE: ConversationMode.LEAD_CAPTURE_SAMPLE_FORM,
}

DEFAULT_LEAD_CONTEXT: dict[LeadKind, str] = {
    LeadKind.CONTACT: "General Contact Request",
    LeadKind.SAMPLE: "General Sample Request",
}


def _is_usable_url(value: Optional[str]) -> bool:
    return bool(value) and value != "#"


class ConversationFlowController:
    """
    Drives one widget session.

    Args:
        exchange_client: Sends utterances to the assistant (the orchestrator,
            or a remote proxy for it).
        config_service: Source of theme, greeting, and email-gate settings.
        session_store: Durable key/value store holding the thread handle.
        catalog: Product tree browsed by the enquiry flow.
        event_sink: Optional analytics sink; failures are logged and ignored.
        open_url: Side effect for link resources. Defaults to logging the URL.
        ip_address: Visitor address recorded with the conversation; public
            addresses are also geolocated.
        user_agent: Visitor user agent recorded with the conversation.
        today: Date provider for callback date validation.
    """

    def __init__(
        self,
        exchange_client: ExchangeClient,
        config_service: WidgetConfigService,
        session_store: SessionStore,
        catalog: ProductCatalog = DEFAULT_CATALOG,
        event_sink: Optional[EventSink] = None,
        open_url: Optional[Callable[[str], None]] = None,
        config_identifier: str = settings.widget.config_identifier,
        start_url: Optional[str] = None,
        channel: str = settings.widget.channel,
        storage_key: str = settings.widget.thread_storage_key,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._client = exchange_client
        self._config_service = config_service
        self._session_store = session_store
        self._catalog = catalog
        self._event_sink = event_sink
        self._open_url = open_url
        self._config_identifier = config_identifier
        self._start_url = start_url
        self._channel = channel
        self._storage_key = storage_key
        self._ip_address = ip_address
        self._user_agent = user_agent

        self._machine = ConversationStateMachine()
        self._slots = CallbackSlots(today=today)
        self._messages: list[ChatMessage] = []
        self._notices: list[str] = []
        self._greeting_shown = False

        self.config: Optional[WidgetConfig] = None
        self.busy = False
        self.contact_gate_visible = False
        self.callback_completed = False
        self.user_email: Optional[str] = None
        self.thread_id: Optional[str] = None
        self.conversation_id: Optional[str] = None
        self.selected_category_key: Optional[str] = None
        self.selected_subcategory_key: Optional[str] = None
        self.capture_context: Optional[str] = None
        self.field_errors: dict[str, str] = {}

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ConversationMode:
        return self._machine.current_mode

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def slots(self) -> CallbackSlots:
        return self._slots

    @property
    def state_machine(self) -> ConversationStateMachine:
        return self._machine

    def current_category(self) -> Optional[Category]:
        if self.selected_category_key is None:
            return None
        return self._catalog.get_category(self.selected_category_key)

    def current_subcategory(self) -> Optional[Subcategory]:
        if self.selected_category_key is None or self.selected_subcategory_key is None:
            return None
        return self._catalog.get_subcategory(
            self.selected_category_key, self.selected_subcategory_key
        )

    def current_view(self) -> WidgetView:
        return build_view(ViewState(
            mode=self.mode,
            catalog=self._catalog,
            category=self.current_category(),
            subcategory=self.current_subcategory(),
            callback_completed=self.callback_completed,
            field_errors=self.field_errors,
            busy=self.busy,
            contact_gate=self.contact_gate_visible,
        ))

    def pop_notices(self) -> list[str]:
        """Return and clear pending transient notices."""
        notices, self._notices = self._notices, []
        return notices

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append(self, role: MessageRole, text: str) -> None:
        self._messages.append(ChatMessage(role=role, text=text))

    def _emit(self, event_type: str, details: dict) -> None:
        if self._event_sink is None:
            return
        event = WidgetEvent(
            event_type=event_type,
            details=details,
            conversation_id=self.conversation_id,
            thread_id=self.thread_id,
        )
        try:
            self._event_sink.record(event)
        except Exception as exc:
            logger.warning("Failed to record widget event %s: %s", event_type, exc)

    def _fail_closed(self, reason: str, notice: str = GENERIC_RESET_NOTICE) -> bool:
        """Reset to INITIAL after an internal inconsistency."""
        logger.error("Flow invariant violated in %s: %s", self.mode.value, reason)
        self._machine.reset(reason)
        self._slots.clear()
        self.selected_category_key = None
        self.selected_subcategory_key = None
        self.capture_context = None
        self.field_errors.clear()
        self._notices.append(notice)
        return False

    @property
    def _blocked(self) -> bool:
        return self.busy or self.contact_gate_visible

    def _guard(self, trigger: FlowTrigger, action: str) -> bool:
        if self._machine.can_fire(trigger):
            return True
        self._fail_closed(f"{action} is not valid in mode {self.mode.value}")
        return False

    def _exchange_context(self) -> ExchangeContext:
        return ExchangeContext(
            user_email=self.user_email,
            channel=self._channel,
            start_url=self._start_url,
            ip_address=self._ip_address,
            user_agent=self._user_agent,
        )

    def _remember_ids(self, result: ExchangeResult) -> None:
        if result.thread_id and result.thread_id != self.thread_id:
            logger.info("Thread id updated to %s", result.thread_id)
            self.thread_id = result.thread_id
            self._session_store.set(self._storage_key, result.thread_id)
        if result.conversation_id and result.conversation_id != self.conversation_id:
            self.conversation_id = result.conversation_id

    async def _exchange(self, text: str, hidden: bool = False) -> bool:
        """Send one utterance; append replies unless hidden. True on success."""
        self.busy = True
        try:
            result = await self._client.handle_exchange(
                text, thread_id=self.thread_id, context=self._exchange_context()
            )
        except ExchangeError as exc:
            logger.error("Exchange failed: %s", exc)
            if not hidden:
                self._append(MessageRole.ERROR, str(exc) or UNKNOWN_ERROR_TEXT)
            return False
        finally:
            self.busy = False

        self._remember_ids(result)
        if not hidden:
            for reply in result.replies:
                if reply.strip():
                    self._append(MessageRole.ASSISTANT, reply)
        return True

    def _show_greeting(self) -> None:
        if self._greeting_shown or self.contact_gate_visible or self.config is None:
            return
        if not self._messages:
            self._append(MessageRole.ASSISTANT, self.config.initial_message)
        self._greeting_shown = True

    # ------------------------------------------------------------------
    # Session start and contact gate
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Load the stored thread handle and widget settings, then greet once."""
        if self.busy:
            return False
        stored = self._session_store.get(self._storage_key)
        if stored:
            self.thread_id = stored
        logger.info("Widget starting (thread=%s)", self.thread_id or "none")

        if self.config is None:
            try:
                self.config = await self._config_service.get_config(self._config_identifier)
            except WidgetConfigError as exc:
                logger.warning("Using fallback widget settings: %s", exc)
                self.config = FALLBACK_WIDGET_CONFIG

        self.contact_gate_visible = self.config.require_email_first and not self.user_email
        self._show_greeting()
        return True

    def submit_contact_email(self, email: str) -> bool:
        if self.busy:
            return False
        self.field_errors.pop("email", None)
        candidate = email.strip()
        if not candidate:
            self.field_errors["email"] = "Email address cannot be empty."
            return False
        if not is_valid_email(candidate):
            self.field_errors["email"] = "Please enter a valid email address."
            return False
        self.user_email = candidate
        self.contact_gate_visible = False
        self._show_greeting()
        return True

    # ------------------------------------------------------------------
    # Free chat
    # ------------------------------------------------------------------

    def start_free_chat(self) -> bool:
        if self._blocked or not self._guard(FlowTrigger.FREE_CHAT_STARTED, "start_free_chat"):
            return False
        self._machine.transition(FlowTrigger.FREE_CHAT_STARTED)
        return True

    async def submit_free_text(self, text: str) -> bool:
        """Send literal text. Ignored outside FREE_CHAT, when blank, or while busy."""
        if self.mode != ConversationMode.FREE_CHAT or self._blocked:
            return False
        message = text.strip()
        if not message:
            return False
        self._append(MessageRole.USER, message)
        await self._exchange(message)
        return True

    # ------------------------------------------------------------------
    # Callback flow
    # ------------------------------------------------------------------

    async def begin_callback_flow(self) -> bool:
        """Establish the thread with a hidden exchange, then ask for a name."""
        if self._blocked or not self._guard(FlowTrigger.CALLBACK_STARTED, "begin_callback_flow"):
            return False
        ok = await self._exchange(CALLBACK_INITIATION_MESSAGE, hidden=True)
        if not ok or not self.conversation_id:
            logger.warning("Callback flow could not be started")
            self._notices.append(CALLBACK_START_FAILED)
            return False

        self._slots.clear()
        self.field_errors.clear()
        self._machine.transition(FlowTrigger.CALLBACK_STARTED)
        self._append(MessageRole.ASSISTANT, CALLBACK_START_PROMPT)
        self._emit("flow_start", {"flow": "callback", "label": "Arrange a Callback"})
        return True

    def _submit_callback_field(
        self,
        slot_name: str,
        error_key: str,
        value: str,
        trigger: FlowTrigger,
        echo: Callable[[str], str],
        prompt: Callable[[str], str],
    ) -> bool:
        if self._blocked or not self._guard(trigger, f"submit {error_key}"):
            return False
        self.field_errors.pop(error_key, None)
        ok, message = self._slots.set_slot(slot_name, value)
        if not ok:
            self.field_errors[error_key] = message
            return False
        stored = self._slots.get_slot_value(slot_name)
        self._append(MessageRole.USER, echo(stored))
        self._machine.transition(trigger)
        self._append(MessageRole.ASSISTANT, prompt(stored))
        return True

    def submit_name(self, value: str) -> bool:
        return self._submit_callback_field(
            "name", "name", value, FlowTrigger.NAME_ACCEPTED,
            echo=lambda v: f"My name is {v}",
            prompt=lambda v: f"Thanks {v}! What's the best phone number to reach you at?",
        )

    def submit_phone(self, value: str) -> bool:
        return self._submit_callback_field(
            "phone_number", "phone", value, FlowTrigger.PHONE_ACCEPTED,
            echo=lambda v: f"My number is {v}",
            prompt=lambda v: "Got it. And briefly, what is the call regarding?",
        )

    def submit_enquiry(self, value: str) -> bool:
        return self._submit_callback_field(
            "enquiry", "enquiry", value, FlowTrigger.ENQUIRY_ACCEPTED,
            echo=lambda v: f"It's regarding: {v}",
            prompt=lambda v: "Great, please pick a date for our call.",
        )

    def submit_date(self, value: date) -> bool:
        if self._blocked or not self._guard(FlowTrigger.DATE_ACCEPTED, "submit_date"):
            return False
        if not self._slots.ready_for_date():
            return self._fail_closed("date submitted before name, phone, and enquiry")
        self.field_errors.pop("date", None)
        ok, message = self._slots.set_date(value)
        if not ok:
            self.field_errors["date"] = message
            return False
        chosen = self._slots.get_slot_value("date")
        self._append(MessageRole.USER, f"I'd like the call on {format_long_date(chosen)}")
        self._machine.transition(FlowTrigger.DATE_ACCEPTED)
        self._append(MessageRole.ASSISTANT, "Got it. And is morning or afternoon better for the call?")
        return True

    async def select_time_slot(self, slot: Union[TimeSlot, str]) -> bool:
        """
        Finalize the callback with the chosen slot.

        The combined details go to the assistant as one utterance; the log
        only shows the short confirmation. Callback fields are cleared and
        the mode moves to FREE_CHAT whether or not the exchange succeeds.
        """
        if self._blocked:
            return False
        if not self._slots.ready_for_time_slot():
            return self._fail_closed(
                "time slot selected before all callback details were held",
                notice=CALLBACK_DETAILS_MISSING,
            )
        if not self._guard(FlowTrigger.CALLBACK_FINALIZED, "select_time_slot"):
            return False

        if isinstance(slot, str):
            chosen = next((s for s in TIME_SLOTS if s.value == slot), None)
            if chosen is None:
                return self._fail_closed(f"unknown time slot {slot!r}")
            slot = chosen

        self._slots.set_slot("time_slot", slot.value)
        request = self._slots.to_request()
        final_message = (
            f"{slot.label} works for me. Please schedule the callback with these details: "
            f"Name: {request.name}, Phone: {request.phone_number}, "
            f"Enquiry: {request.enquiry_text}, "
            f"Date: {format_long_date(request.callback_date)}, Time Slot: {slot.value}"
        )
        self._append(MessageRole.USER, f"{slot.label} works for me.")
        await self._exchange(final_message)

        self._slots.clear()
        self.callback_completed = True
        self._machine.transition(FlowTrigger.CALLBACK_FINALIZED)
        return True

    # ------------------------------------------------------------------
    # Product enquiry
    # ------------------------------------------------------------------

    def begin_enquiry_flow(self) -> bool:
        if self._blocked or not self._guard(FlowTrigger.ENQUIRY_STARTED, "begin_enquiry_flow"):
            return False
        self.selected_category_key = None
        self.selected_subcategory_key = None
        self._append(MessageRole.ASSISTANT, ENQUIRY_START_PROMPT)
        self._machine.transition(FlowTrigger.ENQUIRY_STARTED)
        return True

    def select_category(self, key: str) -> bool:
        if self._blocked or not self._guard(FlowTrigger.CATEGORY_SELECTED, "select_category"):
            return False
        category = self._catalog.get_category(key)
        if category is None:
            return self._fail_closed(f"unknown category key {key!r}")

        self._append(MessageRole.USER, f"I'm interested in {category.label}.")
        if category.subcategories:
            self.selected_category_key = key
            prompt = category.prompt or (
                f"Great! Which type of {category.label.lower()} are you looking for?"
            )
            self._append(MessageRole.ASSISTANT, prompt)
            self._machine.transition(FlowTrigger.CATEGORY_SELECTED)
        else:
            logger.warning("Category %s has no subcategories", key)
            self._append(
                MessageRole.ASSISTANT,
                f"Sorry, I couldn't find specific products for {category.label}. "
                "Is there anything else?",
            )
            self._machine.transition(FlowTrigger.CATEGORY_EMPTY)
        self._emit("button_click", {"type": "category_select", "category": key, "label": category.label})
        return True

    def select_subcategory(self, key: str) -> bool:
        if self._blocked or not self._guard(FlowTrigger.SUBCATEGORY_SELECTED, "select_subcategory"):
            return False
        if self.selected_category_key is None:
            return self._fail_closed("subcategory selected with no category")
        sub = self._catalog.get_subcategory(self.selected_category_key, key)
        if sub is None:
            return self._fail_closed(
                f"unknown subcategory key {key!r} for {self.selected_category_key!r}"
            )

        self.selected_subcategory_key = key
        self._append(MessageRole.USER, f"Okay, tell me more about {sub.label}.")
        prompt = sub.prompt or f"Okay, for {sub.label}, which document or action would you like?"
        self._append(MessageRole.ASSISTANT, prompt)
        self._machine.transition(FlowTrigger.SUBCATEGORY_SELECTED)
        self._emit("button_click", {
            "type": "subcategory_select",
            "category": self.selected_category_key,
            "subcategory": key,
            "label": sub.label,
        })
        return True

    def _resolve_resource(self, resource: Union[Resource, str]) -> Optional[Resource]:
        if isinstance(resource, Resource):
            return resource
        sub = self.current_subcategory()
        if sub is None:
            return None
        return sub.resources.get(resource)

    def select_resource(self, resource: Union[Resource, str]) -> bool:
        """Open a link resource or show the matching lead form.

        ``resource`` is a Resource or the key of one in the current subcategory.
        """
        if self._blocked:
            return False
        if self.mode != ConversationMode.ENQUIRY_RESOURCE:
            return self._fail_closed(f"select_resource is not valid in mode {self.mode.value}")
        selected = self._resolve_resource(resource)
        if selected is None:
            return self._fail_closed(f"unknown resource {resource!r}")

        self._emit("button_click", {
            "type": "resource_select",
            "category": self.selected_category_key,
            "subcategory": self.selected_subcategory_key,
            "resource": selected.label,
            "resource_type": selected.type.value,
        })
        self._append(MessageRole.USER, selected.label)

        if selected.type in URL_RESOURCE_TYPES:
            if _is_usable_url(selected.value) and self._open(selected.value):
                reply = f"Okay, opening the link for: {selected.label}"
            else:
                reply = f"Sorry, the link for '{selected.label}' seems to be missing or invalid."
            trigger = FlowTrigger.LINK_OPENED
        else:
            self.capture_context = selected.value
            reply = FORM_REPLIES[selected.type]
            trigger = FORM_TRIGGERS[selected.type]

        self._append(MessageRole.ASSISTANT, reply)
        self.selected_category_key = None
        self.selected_subcategory_key = None
        self._machine.transition(trigger)
        return True

    def _open(self, url: str) -> bool:
        if self._open_url is None:
            logger.info("Open URL requested: %s", url)
            return True
        try:
            self._open_url(url)
        except Exception as exc:
            logger.warning("Could not open %s: %s", url, exc)
            return False
        return True

    def open_product_page(self) -> bool:
        """Open the current subcategory's product page, if it has one."""
        if self._blocked or not self._guard(FlowTrigger.LINK_OPENED, "open_product_page"):
            return False
        sub = self.current_subcategory()
        if sub is None:
            return self._fail_closed("product page requested with no subcategory")

        self._emit("button_click", {
            "type": "product_page",
            "category": self.selected_category_key,
            "subcategory": self.selected_subcategory_key,
        })
        if not _is_usable_url(sub.product_page_url) or not self._open(sub.product_page_url):
            self._append(
                MessageRole.ASSISTANT,
                f"Sorry, the product page link for {sub.label} seems to be missing.",
            )
            return False

        self._append(MessageRole.USER, f"View Product Page ({sub.label})")
        self._append(MessageRole.ASSISTANT, f"Okay, opening the product page for {sub.label}.")
        self.selected_category_key = None
        self.selected_subcategory_key = None
        self._machine.transition(FlowTrigger.LINK_OPENED)
        return True

    async def tell_me_more(self) -> bool:
        """Hand the current product over to the assistant and switch to free chat."""
        if self._blocked or not self._guard(FlowTrigger.MORE_INFO_REQUESTED, "tell_me_more"):
            return False
        category_key = self.selected_category_key
        subcategory_key = self.selected_subcategory_key
        sub = self.current_subcategory()
        if sub is None:
            return self._fail_closed("tell_me_more with no product selected")

        message = f"Tell me more about {sub.label}."
        self._append(MessageRole.USER, message)
        self.selected_category_key = None
        self.selected_subcategory_key = None
        await self._exchange(message)
        self._machine.transition(FlowTrigger.MORE_INFO_REQUESTED)
        self._emit("button_click", {
            "type": "tell_me_more", "category": category_key, "subcategory": subcategory_key,
        })
        return True

    # ------------------------------------------------------------------
    # Lead capture forms
    # ------------------------------------------------------------------

    def _validate_lead(self, kind: LeadKind, fields: LeadFormInput) -> Optional[str]:
        if not fields.name.strip() or not fields.email.strip():
            return "Name and Email are required."
        if not is_valid_email(fields.email):
            return "Please enter a valid email address."
        if kind == LeadKind.SAMPLE and not fields.address.strip():
            return "Delivery address is required for samples."
        return None

    async def submit_lead_capture(
        self, kind: LeadKind, fields: Union[LeadFormInput, dict]
    ) -> bool:
        """
        Validate the form and ask the assistant to capture the lead.

        Validation failures set ``field_errors['lead']`` and make no network
        call. On success the form is cleared and the mode returns to FREE_CHAT.
        """
        if self._blocked:
            return False
        kind = LeadKind(kind)
        if self.mode != FORM_MODES[kind]:
            return self._fail_closed(
                f"{kind.value} lead submitted in mode {self.mode.value}"
            )
        self.field_errors.pop("lead", None)
        if isinstance(fields, dict):
            try:
                fields = LeadFormInput(**fields)
            except ValidationError as exc:
                logger.warning("Unreadable %s form input: %s", kind.value, exc)
                self.field_errors["lead"] = "Please check the details entered."
                return False

        error = self._validate_lead(kind, fields)
        if error:
            self.field_errors["lead"] = error
            return False

        request = LeadCaptureRequest(
            kind=kind,
            name=fields.name.strip(),
            email=fields.email.strip(),
            phone=fields.phone.strip() or None,
            address=(fields.address.strip() or None) if kind == LeadKind.SAMPLE else None,
            context=self.capture_context or DEFAULT_LEAD_CONTEXT[kind],
        )

        details = (
            f"Type: {kind.value}, Context: {request.context}, "
            f"Name: {request.name}, Email: {request.email}"
        )
        summary = f"Okay, here are my details for the {kind.value} request: {request.name}, {request.email}"
        if request.phone:
            details += f", Phone: {request.phone}"
            summary += f", {request.phone}"
        if request.address:
            details += f", Address: {request.address}"
            summary += f", Address: {request.address}"
        summary += f". Context: {request.context}"

        self._emit("form_submit", {"form_type": f"lead_capture_{kind.value}", "context": request.context})
        self._append(MessageRole.USER, summary)
        self.capture_context = None
        await self._exchange(f"Please capture the following lead details: {details}")
        self._machine.transition(FlowTrigger.LEAD_SUBMITTED)
        return True
