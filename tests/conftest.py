"""Shared test fixtures, fakes, and helpers."""

import asyncio
from datetime import date
from typing import Optional

import pytest

from leadwidget.assistant.orchestrator import AssistantRunOrchestrator
from leadwidget.conversation.flow_controller import ConversationFlowController
from leadwidget.conversation.slot_manager import CallbackSlots
from leadwidget.conversation.state_machine import ConversationStateMachine
from leadwidget.integrations.persistence import InMemoryPersistenceStore
from leadwidget.integrations.session_store import InMemorySessionStore
from leadwidget.integrations.widget_config import StaticWidgetConfigService
from leadwidget.schemas.assistant_schema import (
    AssistantRun,
    RunStatus,
    TextBlock,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)
from leadwidget.schemas.chat_schema import ExchangeContext, ExchangeResult, WidgetEvent
from leadwidget.schemas.widget_schema import GeoLocation, WidgetConfig

TODAY = date(2026, 10, 19)

GREETING = "Hello! How can we help today?"


def make_run(
    status: RunStatus,
    run_id: str = "run_1",
    tool_calls: Optional[list[ToolCall]] = None,
    last_error: Optional[str] = None,
) -> AssistantRun:
    """Helper to create an AssistantRun snapshot."""
    return AssistantRun(
        run_id=run_id,
        status=status,
        required_tool_calls=tool_calls or [],
        last_error=last_error,
    )


def make_reply(text: str, run_id: str = "run_1", msg_id: str = "msg_a", annotations=None) -> ThreadMessage:
    """Helper to create an assistant ThreadMessage stamped with a run id."""
    return ThreadMessage(
        id=msg_id,
        role="assistant",
        run_id=run_id,
        content=[TextBlock(text=text, annotations=annotations or [])],
    )


class FakeAssistantService:
    """
    Scripted AssistantService.

    ``statuses`` is the sequence returned by successive get_run calls.
    ``messages`` is what list_messages returns (newest first).
    """

    def __init__(
        self,
        statuses: Optional[list[AssistantRun]] = None,
        messages: Optional[list[ThreadMessage]] = None,
        thread_id: str = "thread_new",
        run_id: str = "run_1",
    ) -> None:
        self.statuses = list(statuses or [make_run(RunStatus.COMPLETED, run_id)])
        self.messages = list(messages if messages is not None else [make_reply("Hi there!", run_id)])
        self.thread_id = thread_id
        self.run_id = run_id
        self.created_threads = 0
        self.added: list[tuple[str, str, str]] = []
        self.submitted: list[list[ToolOutput]] = []
        self.polls = 0
        self.fail_create_thread = False
        self.fail_add_message = False
        self.list_calls: list[dict] = []

    async def create_thread(self) -> str:
        if self.fail_create_thread:
            raise RuntimeError("assistant service unavailable")
        self.created_threads += 1
        return self.thread_id

    async def add_message(self, thread_id: str, role: str, content: str) -> None:
        if self.fail_add_message:
            raise RuntimeError("thread is locked")
        self.added.append((thread_id, role, content))

    async def create_run(self, thread_id: str, assistant_id: str) -> AssistantRun:
        return make_run(RunStatus.QUEUED, self.run_id)

    async def get_run(self, thread_id: str, run_id: str) -> AssistantRun:
        self.polls += 1
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> AssistantRun:
        self.submitted.append(list(outputs))
        return make_run(RunStatus.IN_PROGRESS, run_id)

    async def list_messages(
        self, thread_id: str, order: str = "desc", limit: int = 10
    ) -> list[ThreadMessage]:
        self.list_calls.append({"order": order, "limit": limit})
        return list(self.messages)


class FakeGeoLookup:
    def __init__(self, result: Optional[GeoLocation] = None, error: Optional[Exception] = None) -> None:
        self.result = result or GeoLocation(country_code="GB", city="London")
        self.error = error
        self.calls: list[str] = []

    async def lookup(self, ip: Optional[str]) -> GeoLocation:
        self.calls.append(ip)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.result


class FakeExchangeClient:
    """Records utterances and returns canned replies, or raises ExchangeError."""

    def __init__(
        self,
        replies: Optional[list[str]] = None,
        thread_id: str = "thread_1",
        conversation_id: str = "conv_1",
    ) -> None:
        self.replies = replies if replies is not None else ["Sure, happy to help."]
        self.thread_id = thread_id
        self.conversation_id = conversation_id
        self.calls: list[tuple[str, Optional[str], Optional[ExchangeContext]]] = []
        self.error: Optional[Exception] = None
        self.busy_seen: list[bool] = []
        self.controller: Optional[ConversationFlowController] = None

    async def handle_exchange(
        self,
        utterance: str,
        thread_id: Optional[str] = None,
        context: Optional[ExchangeContext] = None,
    ) -> ExchangeResult:
        self.calls.append((utterance, thread_id, context))
        if self.controller is not None:
            self.busy_seen.append(self.controller.busy)
        if self.error is not None:
            raise self.error
        return ExchangeResult(
            replies=list(self.replies),
            thread_id=self.thread_id,
            conversation_id=self.conversation_id,
        )

    @property
    def utterances(self) -> list[str]:
        return [call[0] for call in self.calls]


class BlockingExchangeClient(FakeExchangeClient):
    """Holds every exchange open until ``release`` is set."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.release = asyncio.Event()
        self.entered = asyncio.Event()

    async def handle_exchange(self, utterance, thread_id=None, context=None):
        self.entered.set()
        await self.release.wait()
        return await super().handle_exchange(utterance, thread_id, context)


class RecordingEventSink:
    def __init__(self) -> None:
        self.events: list[WidgetEvent] = []

    def record(self, event: WidgetEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.event_type for e in self.events]


class FailingEventSink:
    def __init__(self) -> None:
        self.attempts = 0

    def record(self, event: WidgetEvent) -> None:
        self.attempts += 1
        raise ConnectionError("analytics endpoint down")


def make_controller(
    client: Optional[FakeExchangeClient] = None,
    config: Optional[WidgetConfig] = None,
    session_store: Optional[InMemorySessionStore] = None,
    event_sink=None,
    opened: Optional[list[str]] = None,
    **options,
) -> ConversationFlowController:
    """Helper to build a controller over fakes with a fixed 'today'."""
    client = client if client is not None else FakeExchangeClient()
    configs = {"default": config or WidgetConfig(theme_color="#000000", initial_message=GREETING)}
    controller = ConversationFlowController(
        exchange_client=client,
        config_service=StaticWidgetConfigService(configs),
        session_store=session_store if session_store is not None else InMemorySessionStore(),
        event_sink=event_sink,
        open_url=opened.append if opened is not None else None,
        config_identifier="default",
        start_url="https://example.com/doors",
        today=lambda: TODAY,
        **options,
    )
    client.controller = controller
    return controller


@pytest.fixture
def state_machine():
    return ConversationStateMachine()


@pytest.fixture
def callback_slots():
    return CallbackSlots(today=lambda: TODAY)


@pytest.fixture
def store():
    return InMemoryPersistenceStore()


@pytest.fixture
def assistant_service():
    return FakeAssistantService()


@pytest.fixture
def orchestrator(assistant_service, store):
    return AssistantRunOrchestrator(
        assistant_service,
        store,
        assistant_id="asst_test",
        poll_interval=0,
        run_timeout=0,
        fetch_limit=10,
    )


@pytest.fixture
def exchange_client():
    return FakeExchangeClient()
