"""
In-memory stand-in for the hosted assistant, for demos without API keys.

Runs go queued -> in_progress -> (requires_action) -> completed across
successive polls. Finalize and lead-capture utterances produced by the
widget trigger the matching tool call, so the full tool round trip is
exercised offline.
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional

from leadwidget.schemas.assistant_schema import (
    AssistantRun,
    RunStatus,
    TextBlock,
    ThreadMessage,
    ToolCall,
    ToolOutput,
)
from leadwidget.tools.lead_tools import ToolName

logger = logging.getLogger(__name__)

CALLBACK_DETAILS = re.compile(
    r"Name: (?P<name>.*?), Phone: (?P<phone_number>.*?), Enquiry: (?P<enquiry_matter>.*?), "
    r"Date: (?P<callback_date>.*?), Time Slot: (?P<callback_time_slot>\w+)"
)
LEAD_DETAILS = re.compile(
    r"Type: (?P<type>\w+), Context: (?P<context>.*?), Name: (?P<name>.*?), "
    r"Email: (?P<email>[^,\s]+)(?:, Phone: (?P<phone>[^,]+))?(?:, Address: (?P<address>.+))?$"
)


def _tool_call_for(utterance: str) -> Optional[ToolCall]:
    match = CALLBACK_DETAILS.search(utterance)
    if match:
        return ToolCall(
            id=f"call_{uuid.uuid4().hex[:8]}",
            function_name=ToolName.SCHEDULE_CALLBACK.value,
            arguments=json.dumps(match.groupdict()),
        )
    match = LEAD_DETAILS.search(utterance)
    if match:
        interest = match.group("context")
        if match.group("address"):
            interest = f"{interest} (deliver to: {match.group('address')})"
        args = {
            "name": match.group("name"),
            "email": match.group("email"),
            "phone": match.group("phone"),
            "interest": interest,
        }
        return ToolCall(
            id=f"call_{uuid.uuid4().hex[:8]}",
            function_name=ToolName.CAPTURE_LEAD.value,
            arguments=json.dumps(args),
        )
    return None


@dataclass
class _OfflineRun:
    run_id: str
    utterance: str
    polls: int = 0
    tool_call: Optional[ToolCall] = None
    tool_result: Optional[dict] = None
    status: RunStatus = RunStatus.QUEUED


@dataclass
class _OfflineThread:
    messages: list[ThreadMessage] = field(default_factory=list)
    runs: dict[str, _OfflineRun] = field(default_factory=dict)
    last_user_text: str = ""


class OfflineAssistantService:
    """Scripted AssistantService: acknowledges each message, runs tools when asked."""

    def __init__(self) -> None:
        self._threads: dict[str, _OfflineThread] = {}

    def _thread(self, thread_id: str) -> _OfflineThread:
        try:
            return self._threads[thread_id]
        except KeyError:
            raise LookupError(f"No such thread: {thread_id}") from None

    async def create_thread(self) -> str:
        thread_id = f"thread_{uuid.uuid4().hex[:12]}"
        self._threads[thread_id] = _OfflineThread()
        return thread_id

    async def add_message(self, thread_id: str, role: str, content: str) -> None:
        thread = self._thread(thread_id)
        thread.messages.append(ThreadMessage(
            id=f"msg_{uuid.uuid4().hex[:8]}", role=role, content=[TextBlock(text=content)],
        ))
        thread.last_user_text = content

    async def create_run(self, thread_id: str, assistant_id: str) -> AssistantRun:
        thread = self._thread(thread_id)
        run = _OfflineRun(
            run_id=f"run_{uuid.uuid4().hex[:8]}",
            utterance=thread.last_user_text,
            tool_call=_tool_call_for(thread.last_user_text),
        )
        thread.runs[run.run_id] = run
        return AssistantRun(run_id=run.run_id, status=run.status)

    async def get_run(self, thread_id: str, run_id: str) -> AssistantRun:
        thread = self._thread(thread_id)
        run = thread.runs[run_id]
        run.polls += 1
        if run.status == RunStatus.QUEUED:
            run.status = RunStatus.IN_PROGRESS
        elif run.status == RunStatus.IN_PROGRESS:
            if run.tool_call is not None and run.tool_result is None:
                run.status = RunStatus.REQUIRES_ACTION
            else:
                run.status = RunStatus.COMPLETED
                self._post_reply(thread, run)
        tool_calls = [run.tool_call] if run.status == RunStatus.REQUIRES_ACTION else []
        return AssistantRun(run_id=run_id, status=run.status, required_tool_calls=tool_calls)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> AssistantRun:
        run = self._thread(thread_id).runs[run_id]
        run.tool_result = json.loads(outputs[0].output) if outputs else {}
        run.status = RunStatus.IN_PROGRESS
        return AssistantRun(run_id=run_id, status=run.status)

    async def list_messages(
        self, thread_id: str, order: str = "desc", limit: int = 10
    ) -> list[ThreadMessage]:
        messages = list(self._thread(thread_id).messages)
        if order == "desc":
            messages.reverse()
        return messages[:limit]

    def _post_reply(self, thread: _OfflineThread, run: _OfflineRun) -> None:
        if run.tool_result is not None:
            if run.tool_result.get("success"):
                text = run.tool_result.get("message", "All done.")
            else:
                text = f"Sorry, I couldn't save that: {run.tool_result.get('error')}"
        else:
            text = f"Thanks for your message. (Offline demo reply to: \"{run.utterance}\")"
        thread.messages.append(ThreadMessage(
            id=f"msg_{uuid.uuid4().hex[:8]}",
            role="assistant",
            run_id=run.run_id,
            content=[TextBlock(text=text)],
        ))
        logger.debug("Offline reply posted for run %s", run.run_id)
