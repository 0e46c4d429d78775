"""
What the widget shows for each mode.

``build_view`` is a pure function of controller state. Each mode has
exactly one builder in VIEW_BUILDERS; a mode without a builder is a
programming error caught at import time.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from leadwidget.conversation.state_machine import ConversationMode
from leadwidget.schemas.lead_schema import TIME_SLOTS, LeadKind
from leadwidget.tools.catalog import Category, ProductCatalog, Subcategory


@dataclass(frozen=True)
class ViewOption:
    """A button: ``action`` names the controller method, ``key`` its argument."""

    action: str
    label: str
    key: Optional[str] = None


@dataclass(frozen=True)
class WidgetView:
    mode: ConversationMode
    options: tuple[ViewOption, ...] = ()
    input_field: Optional[str] = None
    input_placeholder: Optional[str] = None
    show_date_picker: bool = False
    lead_form: Optional[LeadKind] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    busy: bool = False
    contact_gate: bool = False


@dataclass(frozen=True)
class ViewState:
    """Snapshot of the controller fields a view depends on."""

    mode: ConversationMode
    catalog: ProductCatalog
    category: Optional[Category] = None
    subcategory: Optional[Subcategory] = None
    callback_completed: bool = False
    field_errors: dict[str, str] = field(default_factory=dict)
    busy: bool = False
    contact_gate: bool = False


def _base(state: ViewState, **kwargs) -> WidgetView:
    return WidgetView(
        mode=state.mode,
        field_errors=dict(state.field_errors),
        busy=state.busy,
        **kwargs,
    )


def _initial_view(state: ViewState) -> WidgetView:
    options = []
    if not state.callback_completed:
        options.append(ViewOption("begin_callback_flow", "Arrange a Callback"))
    options.append(ViewOption("begin_enquiry_flow", "Enquire More About Our Products"))
    options.append(ViewOption("start_free_chat", "Or, ask a question..."))
    return _base(state, options=tuple(options))


def _callback_name_view(state: ViewState) -> WidgetView:
    return _base(state, input_field="name", input_placeholder="Enter your name...")


def _callback_phone_view(state: ViewState) -> WidgetView:
    return _base(state, input_field="phone", input_placeholder="Enter your phone number...")


def _callback_enquiry_view(state: ViewState) -> WidgetView:
    return _base(state, input_field="enquiry", input_placeholder="What is the call regarding?")


def _callback_datetime_view(state: ViewState) -> WidgetView:
    return _base(state, show_date_picker=True)


def _callback_time_view(state: ViewState) -> WidgetView:
    options = tuple(
        ViewOption("select_time_slot", slot.label, slot.value) for slot in TIME_SLOTS
    )
    return _base(state, options=options)


def _category_view(state: ViewState) -> WidgetView:
    options = tuple(
        ViewOption("select_category", category.label, key)
        for key, category in state.catalog.categories.items()
    )
    return _base(state, options=options)


def _subcategory_view(state: ViewState) -> WidgetView:
    if state.category is None:
        return _base(state)
    options = tuple(
        ViewOption("select_subcategory", sub.label, key)
        for key, sub in state.category.subcategories.items()
    )
    return _base(state, options=options)


def _resource_view(state: ViewState) -> WidgetView:
    sub = state.subcategory
    if sub is None:
        return _base(state)
    options = []
    if sub.product_page_url:
        options.append(ViewOption("open_product_page", "View Product Page"))
    options.extend(
        ViewOption("select_resource", resource.label, key)
        for key, resource in sub.resources.items()
    )
    options.append(ViewOption("tell_me_more", "Ask About This Product"))
    return _base(state, options=tuple(options))


def _contact_form_view(state: ViewState) -> WidgetView:
    return _base(state, lead_form=LeadKind.CONTACT)


def _sample_form_view(state: ViewState) -> WidgetView:
    return _base(state, lead_form=LeadKind.SAMPLE)


def _free_chat_view(state: ViewState) -> WidgetView:
    return _base(state, input_field="message", input_placeholder="Type your message...")


VIEW_BUILDERS: dict[ConversationMode, Callable[[ViewState], WidgetView]] = {
    ConversationMode.INITIAL: _initial_view,
    ConversationMode.CALLBACK_NAME: _callback_name_view,
    ConversationMode.CALLBACK_PHONE: _callback_phone_view,
    ConversationMode.CALLBACK_ENQUIRY: _callback_enquiry_view,
    ConversationMode.CALLBACK_DATETIME: _callback_datetime_view,
    ConversationMode.CALLBACK_TIME: _callback_time_view,
    ConversationMode.ENQUIRY_CATEGORY: _category_view,
    ConversationMode.ENQUIRY_SUBCATEGORY: _subcategory_view,
    ConversationMode.ENQUIRY_RESOURCE: _resource_view,
    ConversationMode.LEAD_CAPTURE_CONTACT_FORM: _contact_form_view,
    ConversationMode.LEAD_CAPTURE_SAMPLE_FORM: _sample_form_view,
    ConversationMode.FREE_CHAT: _free_chat_view,
}

_missing = set(ConversationMode) - set(VIEW_BUILDERS)
if _missing:
    raise RuntimeError(f"No view builder for modes: {sorted(m.value for m in _missing)}")


def build_view(state: ViewState) -> WidgetView:
    """Affordances for the active mode. The contact gate hides everything else."""
    if state.contact_gate:
        return WidgetView(
            mode=state.mode,
            input_field="email",
            input_placeholder="your.email@example.com",
            field_errors=dict(state.field_errors),
            busy=state.busy,
            contact_gate=True,
        )
    return VIEW_BUILDERS[state.mode](state)
