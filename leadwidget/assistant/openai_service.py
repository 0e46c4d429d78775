"""
AssistantService adapter over the OpenAI Assistants API.

Translates SDK objects into the orchestrator's pydantic models so
nothing above this module depends on the SDK's types.
"""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from leadwidget.config import settings
from leadwidget.schemas.assistant_schema import (
    AssistantRun,
    RunStatus,
    TextBlock,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)

logger = logging.getLogger(__name__)

STATUS_MAP: dict[str, RunStatus] = {
    "queued": RunStatus.QUEUED,
    "in_progress": RunStatus.IN_PROGRESS,
    "cancelling": RunStatus.IN_PROGRESS,
    "requires_action": RunStatus.REQUIRES_ACTION,
    "completed": RunStatus.COMPLETED,
    "failed": RunStatus.FAILED,
    "incomplete": RunStatus.FAILED,
    "cancelled": RunStatus.CANCELLED,
    "expired": RunStatus.EXPIRED,
}


def _to_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return {"value": str(value)}


def convert_run(run: Any) -> AssistantRun:
    """Map an SDK run object onto AssistantRun."""
    status = STATUS_MAP.get(run.status)
    if status is None:
        logger.warning("Unknown run status %r, treating as failed", run.status)
        status = RunStatus.FAILED

    tool_calls: list[ToolCall] = []
    required = getattr(run, "required_action", None)
    if status == RunStatus.REQUIRES_ACTION and required is not None:
        for call in required.submit_tool_outputs.tool_calls:
            tool_calls.append(ToolCall(
                id=call.id,
                function_name=call.function.name,
                arguments=call.function.arguments or "{}",
            ))

    last_error = getattr(run, "last_error", None)
    return AssistantRun(
        run_id=run.id,
        status=status,
        required_tool_calls=tool_calls,
        last_error=last_error.message if last_error is not None else None,
    )


def convert_message(message: Any) -> ThreadMessage:
    """Keep only text content blocks; images and files are ignored."""
    blocks = [
        TextBlock(
            text=block.text.value,
            annotations=[_to_dict(a) for a in (block.text.annotations or [])],
        )
        for block in message.content
        if block.type == "text"
    ]
    return ThreadMessage(id=message.id, role=message.role, run_id=message.run_id, content=blocks)


class OpenAIAssistantService:
    """Thread, run, and message calls against ``client.beta.threads``."""

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self._client = client or AsyncOpenAI(api_key=settings.assistant.api_key or None)

    async def create_thread(self) -> str:
        thread = await self._client.beta.threads.create()
        return thread.id

    async def add_message(self, thread_id: str, role: str, content: str) -> None:
        await self._client.beta.threads.messages.create(thread_id, role=role, content=content)

    async def create_run(self, thread_id: str, assistant_id: str) -> AssistantRun:
        run = await self._client.beta.threads.runs.create(thread_id, assistant_id=assistant_id)
        return convert_run(run)

    async def get_run(self, thread_id: str, run_id: str) -> AssistantRun:
        run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        return convert_run(run)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> AssistantRun:
        run = await self._client.beta.threads.runs.submit_tool_outputs(
            run_id,
            thread_id=thread_id,
            tool_outputs=[
                {"tool_call_id": o.tool_call_id, "output": o.output} for o in outputs
            ],
        )
        return convert_run(run)

    async def list_messages(
        self, thread_id: str, order: str = "desc", limit: int = 10
    ) -> list[ThreadMessage]:
        page = await self._client.beta.threads.messages.list(
            thread_id, order=order, limit=limit
        )
        return [convert_message(m) for m in page.data]
