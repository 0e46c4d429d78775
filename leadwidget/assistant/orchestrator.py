"""
Assistant run orchestration.

One call to ``handle_exchange`` takes a visitor utterance through the
hosted assistant's thread/run protocol:

    thread -> conversation record -> user message -> run
        -> poll (tool calls dispatched locally) -> reply

Every message and every tool side effect is logged to the persistence
store. The orchestrator holds no state between calls; all durable state
lives in the store and in the assistant service's thread.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Optional, Protocol

from leadwidget.assistant.citations import clean_reply
from leadwidget.config import settings
from leadwidget.integrations.geo import GeoLookupService
from leadwidget.integrations.persistence import (
    DuplicateThreadError,
    PersistenceStore,
)
from leadwidget.logging_context import get_exchange_logger, set_exchange_id
from leadwidget.schemas.assistant_schema import (
    PENDING_STATUSES,
    AssistantRun,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)
from leadwidget.schemas.chat_schema import ExchangeContext, ExchangeResult
from leadwidget.schemas.widget_schema import ConversationRecord, GeoLocation
from leadwidget.tools.lead_tools import LeadToolHandlers

logger = get_exchange_logger(__name__)


class ExchangeError(Exception):
    """Base class for failures that abort one exchange."""


class InvalidExchangeError(ExchangeError):
    """The inbound request was malformed."""


class ThreadCreationError(ExchangeError):
    """The assistant service could not create a thread."""


class ConversationResolutionError(ExchangeError):
    """The conversation record could not be found or created."""


class MessageDeliveryError(ExchangeError):
    """A message could not be logged, delivered, or read back."""


class RunFailedError(ExchangeError):
    """The run ended in failed, cancelled, or expired."""

    def __init__(self, message: str, status: Optional[RunStatus] = None) -> None:
        super().__init__(message)
        self.status = status


class RunTimeoutError(ExchangeError):
    """The run did not finish within the configured timeout."""


class AssistantService(Protocol):
    async def create_thread(self) -> str:
        ...

    async def add_message(self, thread_id: str, role: str, content: str) -> None:
        ...

    async def create_run(self, thread_id: str, assistant_id: str) -> AssistantRun:
        ...

    async def get_run(self, thread_id: str, run_id: str) -> AssistantRun:
        ...

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> AssistantRun:
        ...

    async def list_messages(
        self, thread_id: str, order: str = "desc", limit: int = 10
    ) -> list[ThreadMessage]:
        ...


class ExchangeClient(Protocol):
    """What the flow controller needs: one utterance in, replies out."""

    async def handle_exchange(
        self,
        utterance: str,
        thread_id: Optional[str] = None,
        context: Optional[ExchangeContext] = None,
    ) -> ExchangeResult:
        ...


class AssistantRunOrchestrator:
    """
    Drives the hosted assistant through one exchange.

    Failure policy:
    - thread creation and conversation resolution failures abort the
      exchange with no retry;
    - tool handler failures are reported to the assistant as failed
      outputs and the run carries on;
    - a run ending in anything but completed logs an error message and
      aborts;
    - any other failure after the conversation is known is logged as a
      "Server Error" message before being raised.
    """

    def __init__(
        self,
        assistant_service: AssistantService,
        store: PersistenceStore,
        geo_lookup: Optional[GeoLookupService] = None,
        assistant_id: str = settings.assistant.assistant_id,
        tool_handlers: Optional[LeadToolHandlers] = None,
        poll_interval: float = settings.assistant.poll_interval_sec,
        run_timeout: float = settings.assistant.run_timeout_sec,
        fetch_limit: int = settings.assistant.message_fetch_limit,
    ) -> None:
        self._service = assistant_service
        self._store = store
        self._geo = geo_lookup
        self._assistant_id = assistant_id
        self._tools = tool_handlers or LeadToolHandlers(store)
        self._poll_interval = poll_interval
        self._run_timeout = run_timeout
        self._fetch_limit = fetch_limit

    async def handle_exchange(
        self,
        utterance: str,
        thread_id: Optional[str] = None,
        context: Optional[ExchangeContext] = None,
    ) -> ExchangeResult:
        """
        Send one utterance and return the assistant's reply.

        Args:
            utterance: Text to add to the thread as the user.
            thread_id: Existing thread handle, or None to start a new thread.
            context: Caller metadata recorded on a newly created conversation.

        Returns:
            ExchangeResult with zero or one cleaned reply plus identifiers.

        Raises:
            ExchangeError: A subclass describing which step failed.
        """
        set_exchange_id(f"EX-{uuid.uuid4().hex[:8]}")
        if not isinstance(utterance, str) or not utterance.strip():
            raise InvalidExchangeError("Message is required and must be a non-empty string")
        context = context or ExchangeContext()

        logger.info(
            "Exchange received (thread=%s, channel=%s)", thread_id or "new", context.channel
        )

        if not thread_id:
            try:
                thread_id = await self._service.create_thread()
            except Exception as exc:
                raise ThreadCreationError(f"Failed to create a thread: {exc}") from exc
            logger.info("Created new thread %s", thread_id)

        try:
            conversation = await self._resolve_conversation(thread_id, context)
        except ExchangeError:
            raise
        except Exception as exc:
            raise ConversationResolutionError(
                f"Failed to get or create a conversation: {exc}"
            ) from exc

        try:
            replies = await self._run_exchange(utterance, thread_id, conversation, context)
        except RunFailedError:
            raise
        except ExchangeError as exc:
            await self._log_error(conversation.id, f"Server Error: {exc}")
            raise

        return ExchangeResult(replies=replies, thread_id=thread_id, conversation_id=conversation.id)

    async def _resolve_conversation(
        self, thread_id: str, context: ExchangeContext
    ) -> ConversationRecord:
        existing = await self._store.find_conversation_by_thread(thread_id)
        if existing is not None:
            return existing

        geo = await self._lookup_geo(context.ip_address)
        try:
            return await self._store.create_conversation(thread_id, context, geo)
        except DuplicateThreadError:
            # Another exchange created it first; use that row.
            logger.info("Conversation for thread %s created concurrently, reusing", thread_id)
            existing = await self._store.find_conversation_by_thread(thread_id)
            if existing is None:
                raise ConversationResolutionError(
                    f"Conversation for thread {thread_id} vanished after a duplicate insert"
                )
            return existing

    async def _lookup_geo(self, ip: Optional[str]) -> GeoLocation:
        if self._geo is None or not ip:
            return GeoLocation.unknown()
        try:
            return await self._geo.lookup(ip)
        except Exception as exc:
            logger.warning("Geo lookup failed for %s, continuing without it: %s", ip, exc)
            return GeoLocation.unknown()

    async def _run_exchange(
        self,
        utterance: str,
        thread_id: str,
        conversation: ConversationRecord,
        context: ExchangeContext,
    ) -> list[str]:
        try:
            await self._store.insert_message(conversation.id, "user", utterance)
            await self._service.add_message(thread_id, "user", utterance)
            run = await self._service.create_run(thread_id, self._assistant_id)
        except Exception as exc:
            raise MessageDeliveryError(f"Failed to submit message: {exc}") from exc
        logger.info("Run %s created for thread %s", run.run_id, thread_id)

        run = await self._wait_for_run(thread_id, run, conversation.id, context.user_id)

        if run.status != RunStatus.COMPLETED:
            reason = run.last_error or "Run did not complete successfully"
            logger.error("Run %s ended with status %s: %s", run.run_id, run.status.value, reason)
            await self._log_error(conversation.id, f"Run failed: {reason}", run.run_id)
            raise RunFailedError(f"Run failed: {reason}", status=run.status)

        return await self._collect_reply(thread_id, run.run_id, conversation.id)

    async def _wait_for_run(
        self,
        thread_id: str,
        run: AssistantRun,
        conversation_id: str,
        user_id: Optional[str],
    ) -> AssistantRun:
        poll = self._poll_run(thread_id, run, conversation_id, user_id)
        if self._run_timeout <= 0:
            return await poll
        try:
            return await asyncio.wait_for(poll, timeout=self._run_timeout)
        except asyncio.TimeoutError:
            raise RunTimeoutError(
                f"Run {run.run_id} did not finish within {self._run_timeout:g}s"
            ) from None

    async def _poll_run(
        self,
        thread_id: str,
        run: AssistantRun,
        conversation_id: str,
        user_id: Optional[str],
    ) -> AssistantRun:
        """Poll until the run leaves queued/in_progress/requires_action."""
        run_id = run.run_id
        while True:
            try:
                run = await self._service.get_run(thread_id, run_id)
            except Exception as exc:
                raise ExchangeError(f"Failed to retrieve run {run_id}: {exc}") from exc
            logger.debug("Run %s status: %s", run_id, run.status.value)

            if run.status in PENDING_STATUSES:
                await asyncio.sleep(self._poll_interval)
                continue

            if run.status == RunStatus.REQUIRES_ACTION:
                outputs = [
                    await self._execute_tool_call(call, conversation_id, user_id)
                    for call in run.required_tool_calls
                ]
                try:
                    await self._service.submit_tool_outputs(thread_id, run_id, outputs)
                except Exception as exc:
                    raise ExchangeError(f"Failed to submit tool outputs: {exc}") from exc
                logger.info("Submitted %d tool output(s) for run %s", len(outputs), run_id)
                continue

            return run

    async def _execute_tool_call(
        self, call: ToolCall, conversation_id: str, user_id: Optional[str]
    ) -> ToolOutput:
        try:
            args = json.loads(call.arguments or "{}")
        except ValueError as exc:
            logger.warning("Malformed arguments for %s: %s", call.function_name, exc)
            result: dict[str, Any] = {
                "success": False,
                "error": f"Invalid arguments for '{call.function_name}': {exc}",
            }
            return ToolOutput(tool_call_id=call.id, output=json.dumps(result))

        if not isinstance(args, dict):
            result = {
                "success": False,
                "error": f"Arguments for '{call.function_name}' must be a JSON object.",
            }
            return ToolOutput(tool_call_id=call.id, output=json.dumps(result))

        logger.info("Processing tool call %s: %s", call.id, call.function_name)
        try:
            result = dict(
                await self._tools.dispatch(call.function_name, args, conversation_id, user_id)
            )
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", call.function_name)
            result = {"success": False, "error": str(exc) or "Tool execution failed."}
        return ToolOutput(tool_call_id=call.id, output=json.dumps(result))

    async def _collect_reply(
        self, thread_id: str, run_id: str, conversation_id: str
    ) -> list[str]:
        try:
            messages = await self._service.list_messages(
                thread_id, order="desc", limit=self._fetch_limit
            )
        except Exception as exc:
            raise MessageDeliveryError(f"Failed to fetch assistant reply: {exc}") from exc

        # Select by run id; the newest assistant message may belong to another run.
        reply = next(
            (m for m in messages if m.run_id == run_id and m.role == "assistant"), None
        )
        if reply is None:
            logger.info("No assistant message found for run %s", run_id)
            return []

        raw_text = "\n".join(block.text for block in reply.content)
        if not raw_text:
            logger.info("Assistant message %s has no text content", reply.id)
            return []

        annotations = reply.content[0].annotations if reply.content else []
        try:
            await self._store.insert_message(
                conversation_id,
                "assistant",
                raw_text,
                run_id=run_id,
                metadata={"citations": annotations},
            )
        except Exception as exc:
            raise MessageDeliveryError(f"Failed to log assistant reply: {exc}") from exc

        cleaned = clean_reply(raw_text)
        return [cleaned] if cleaned else []

    async def _log_error(
        self, conversation_id: str, content: str, run_id: Optional[str] = None
    ) -> None:
        """Best-effort error message; a store failure here is only logged."""
        try:
            await self._store.insert_message(conversation_id, "error", content, run_id=run_id)
        except Exception as exc:
            logger.error("Failed to log error message for %s: %s", conversation_id, exc)
