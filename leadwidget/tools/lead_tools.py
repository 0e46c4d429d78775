"""
Lead capture and callback scheduling tools invoked by the hosted assistant.

Each handler takes the parsed tool arguments plus the conversation the
run belongs to, performs one persistence write, and returns a
JSON-serializable ``{success, message}`` or ``{success, error}`` dict.
Handlers never raise and never call back into the assistant service.
"""

import logging
from enum import Enum
from typing import Any, Optional, TypedDict

from leadwidget.integrations.persistence import PersistenceStore

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    """Function names the backend knows how to execute."""

    CAPTURE_LEAD = "capture_lead"
    SCHEDULE_CALLBACK = "schedule_callback"


class ToolResult(TypedDict, total=False):
    success: bool
    message: str
    error: str


CAPTURE_LEAD_REQUIRED = ("email", "interest")
SCHEDULE_CALLBACK_REQUIRED = (
    "name",
    "phone_number",
    "enquiry_matter",
    "callback_date",
    "callback_time_slot",
)


def _missing_fields(args: dict[str, Any], required: tuple[str, ...]) -> list[str]:
    missing = []
    for name in required:
        value = args.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def unhandled_tool_result(function_name: str) -> ToolResult:
    return {
        "success": False,
        "error": f"Function '{function_name}' is not handled by the backend.",
    }


class LeadToolHandlers:
    """Executes lead tools against a persistence store."""

    def __init__(self, store: PersistenceStore) -> None:
        self._store = store

    async def capture_lead(
        self,
        args: dict[str, Any],
        conversation_id: str,
        user_id: Optional[str] = None,
    ) -> ToolResult:
        """Insert a new lead row with status 'new' and the raw arguments kept for audit."""
        missing = _missing_fields(args, CAPTURE_LEAD_REQUIRED)
        if missing:
            logger.warning("capture_lead rejected, missing: %s", missing)
            return {
                "success": False,
                "error": f"Missing required fields: {', '.join(missing)}.",
            }

        try:
            record = await self._store.insert_lead(
                conversation_id,
                {
                    "name": args.get("name"),
                    "email": args["email"],
                    "phone": args.get("phone"),
                    "interest": args["interest"],
                    "raw_data": dict(args),
                    "status": "new",
                    "user_id": user_id,
                },
            )
        except Exception as exc:
            logger.error("capture_lead failed for conversation %s: %s", conversation_id, exc)
            return {"success": False, "error": str(exc) or "Failed to save lead details."}

        logger.info("Lead %s captured for conversation %s", record.id, conversation_id)
        return {"success": True, "message": "Lead details saved successfully."}

    async def schedule_callback(self, args: dict[str, Any], conversation_id: str) -> ToolResult:
        """Upsert the single callback lead for this conversation."""
        missing = _missing_fields(args, SCHEDULE_CALLBACK_REQUIRED)
        if missing:
            logger.warning("schedule_callback rejected, missing: %s", missing)
            return {
                "success": False,
                "error": f"Missing required fields for scheduling callback: {', '.join(missing)}.",
            }

        name = args["name"]
        phone = args["phone_number"]
        callback_date = str(args["callback_date"])
        time_slot = args["callback_time_slot"]
        try:
            await self._store.upsert_lead(
                conversation_id,
                {
                    "name": name,
                    "phone": phone,
                    "enquiry_matter": args["enquiry_matter"],
                    "callback_date": callback_date,
                    "callback_time_slot": time_slot,
                },
            )
        except Exception as exc:
            logger.error("schedule_callback failed for conversation %s: %s", conversation_id, exc)
            return {"success": False, "error": str(exc) or "Failed to schedule callback."}

        return {
            "success": True,
            "message": (
                f"Callback scheduled successfully for {name} on {callback_date} "
                f"({time_slot}). We will call {phone}."
            ),
        }

    async def dispatch(
        self,
        function_name: str,
        args: dict[str, Any],
        conversation_id: str,
        user_id: Optional[str] = None,
    ) -> ToolResult:
        """Route a tool call by name. Unknown names get a structured failure."""
        try:
            tool = ToolName(function_name)
        except ValueError:
            logger.warning("Unhandled function call: %s", function_name)
            return unhandled_tool_result(function_name)

        if tool is ToolName.CAPTURE_LEAD:
            return await self.capture_lead(args, conversation_id, user_id)
        return await self.schedule_callback(args, conversation_id)


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": ToolName.CAPTURE_LEAD.value,
            "description": (
                "Save a prospective customer's contact details and what they are "
                "interested in, for a contact or sample request."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Customer's full name"},
                    "email": {"type": "string", "description": "Customer's email address"},
                    "phone": {"type": "string", "description": "Customer's phone number"},
                    "interest": {
                        "type": "string",
                        "description": "Product or request context, including any delivery address",
                    },
                },
                "required": list(CAPTURE_LEAD_REQUIRED),
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": ToolName.SCHEDULE_CALLBACK.value,
            "description": "Book a phone callback for the customer on a given date and time slot.",
            "parameters": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Customer's name"},
                    "phone_number": {"type": "string", "description": "Number to call"},
                    "enquiry_matter": {"type": "string", "description": "What the call is about"},
                    "callback_date": {"type": "string", "description": "Requested date"},
                    "callback_time_slot": {
                        "type": "string",
                        "enum": ["morning", "afternoon"],
                        "description": "Requested time of day",
                    },
                },
                "required": list(SCHEDULE_CALLBACK_REQUIRED),
            },
        },
    },
]
