"""Widget analytics events.

The controller hands events to a sink synchronously and never waits on
delivery. A sink that needs the network should queue internally.
"""

import logging
from typing import Protocol

from leadwidget.schemas.chat_schema import WidgetEvent

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def record(self, event: WidgetEvent) -> None:
        ...


class LoggingEventSink:
    """Writes each event to the log and keeps it for inspection."""

    def __init__(self) -> None:
        self.events: list[WidgetEvent] = []

    def record(self, event: WidgetEvent) -> None:
        self.events.append(event)
        logger.info(
            "Widget event %s (conversation=%s): %s",
            event.event_type, event.conversation_id, event.details,
        )
