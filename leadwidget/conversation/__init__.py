from leadwidget.conversation.flow_controller import ConversationFlowController
from leadwidget.conversation.slot_manager import CallbackSlots, SlotStatus
from leadwidget.conversation.state_machine import (
    ConversationMode,
    ConversationStateMachine,
    FlowTrigger,
    InvalidTransitionError,
)
from leadwidget.conversation.views import WidgetView, build_view

__all__ = [
    "ConversationFlowController",
    "ConversationStateMachine",
    "ConversationMode",
    "FlowTrigger",
    "InvalidTransitionError",
    "CallbackSlots",
    "SlotStatus",
    "WidgetView",
    "build_view",
]
