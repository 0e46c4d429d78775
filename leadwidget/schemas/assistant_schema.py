"""Models for the hosted assistant's thread/run/tool-call protocol."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


PENDING_STATUSES = frozenset({RunStatus.QUEUED, RunStatus.IN_PROGRESS})
TERMINAL_STATUSES = frozenset(
    {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED, RunStatus.EXPIRED}
)


class ToolCall(BaseModel):
    """A function invocation requested by the assistant mid-run."""

    id: str
    function_name: str
    arguments: str = "{}"


class ToolOutput(BaseModel):
    """Answer to a ToolCall; output is a JSON string."""

    tool_call_id: str
    output: str


class AssistantRun(BaseModel):
    """Snapshot of one run as reported by the assistant service."""

    run_id: str
    status: RunStatus
    required_tool_calls: list[ToolCall] = Field(default_factory=list)
    last_error: Optional[str] = None


class TextBlock(BaseModel):
    """Text content of a thread message, with citation annotations if any."""

    text: str
    annotations: list[dict[str, Any]] = Field(default_factory=list)


class ThreadMessage(BaseModel):
    id: str
    role: str
    run_id: Optional[str] = None
    content: list[TextBlock] = Field(default_factory=list)
