"""Tests for the lead capture and callback scheduling tools."""

import pytest

from leadwidget.integrations.persistence import InMemoryPersistenceStore
from leadwidget.schemas.chat_schema import ExchangeContext
from leadwidget.schemas.widget_schema import GeoLocation
from leadwidget.tools.lead_tools import TOOL_DEFINITIONS, LeadToolHandlers, ToolName

CALLBACK_ARGS = {
    "name": "Jane Doe",
    "phone_number": "0412 345 678",
    "enquiry_matter": "Bi-fold door quote",
    "callback_date": "2026-10-20",
    "callback_time_slot": "morning",
}


class _ToolTestBase:
    def setup_method(self):
        self.store = InMemoryPersistenceStore()
        self.handlers = LeadToolHandlers(self.store)

    async def _conversation_id(self) -> str:
        record = await self.store.create_conversation(
            "thread_1", ExchangeContext(), GeoLocation.unknown()
        )
        return record.id


class TestCaptureLead(_ToolTestBase):
    @pytest.mark.asyncio
    async def test_missing_interest_rejected(self):
        cid = await self._conversation_id()
        result = await self.handlers.capture_lead({"email": "a@b.co"}, cid)
        assert result["success"] is False
        assert "interest" in result["error"]
        assert self.store.leads == {}

    @pytest.mark.asyncio
    async def test_blank_email_counts_as_missing(self):
        cid = await self._conversation_id()
        result = await self.handlers.capture_lead({"email": "  ", "interest": "Doors"}, cid)
        assert result["success"] is False
        assert "email" in result["error"]

    @pytest.mark.asyncio
    async def test_lead_saved_with_raw_arguments(self):
        cid = await self._conversation_id()
        args = {"name": "Jane", "email": "jane@example.com", "interest": "Sample: Oak"}
        result = await self.handlers.capture_lead(args, cid, user_id="user_9")
        assert result == {"success": True, "message": "Lead details saved successfully."}

        (lead,) = self.store.leads.values()
        assert lead.status == "new"
        assert lead.email == "jane@example.com"
        assert lead.interest == "Sample: Oak"
        assert lead.phone is None
        assert lead.raw_data == args
        assert lead.user_id == "user_9"

    @pytest.mark.asyncio
    async def test_each_capture_inserts_a_new_row(self):
        cid = await self._conversation_id()
        args = {"email": "jane@example.com", "interest": "Doors"}
        await self.handlers.capture_lead(args, cid)
        await self.handlers.capture_lead(args, cid)
        assert len(self.store.leads) == 2

    @pytest.mark.asyncio
    async def test_store_failure_becomes_error_result(self):
        result = await self.handlers.capture_lead(
            {"email": "jane@example.com", "interest": "Doors"}, "no-such-conversation"
        )
        assert result["success"] is False
        assert "not found" in result["error"]


class TestScheduleCallback(_ToolTestBase):
    @pytest.mark.asyncio
    async def test_missing_fields_listed(self):
        cid = await self._conversation_id()
        result = await self.handlers.schedule_callback({"name": "Jane"}, cid)
        assert result["success"] is False
        assert result["error"].startswith("Missing required fields for scheduling callback:")
        assert "phone_number" in result["error"]
        assert "callback_time_slot" in result["error"]
        assert self.store.leads == {}

    @pytest.mark.asyncio
    async def test_success_message(self):
        cid = await self._conversation_id()
        result = await self.handlers.schedule_callback(dict(CALLBACK_ARGS), cid)
        assert result["success"] is True
        assert result["message"] == (
            "Callback scheduled successfully for Jane Doe on 2026-10-20 (morning). "
            "We will call 0412 345 678."
        )

    @pytest.mark.asyncio
    async def test_one_callback_row_per_conversation(self):
        cid = await self._conversation_id()
        await self.handlers.schedule_callback(dict(CALLBACK_ARGS), cid)
        first = next(iter(self.store.leads.values()))

        updated_args = {**CALLBACK_ARGS, "callback_time_slot": "afternoon"}
        await self.handlers.schedule_callback(updated_args, cid)

        assert len(self.store.leads) == 1
        lead = self.store.leads[first.id]
        assert lead.callback_time_slot == "afternoon"
        assert lead.created_at == first.created_at
        assert lead.updated_at >= first.updated_at


class TestDispatch(_ToolTestBase):
    @pytest.mark.asyncio
    async def test_routes_by_name(self):
        cid = await self._conversation_id()
        result = await self.handlers.dispatch("schedule_callback", dict(CALLBACK_ARGS), cid)
        assert result["success"] is True
        assert len(self.store.leads) == 1

    @pytest.mark.asyncio
    async def test_unknown_function(self):
        cid = await self._conversation_id()
        result = await self.handlers.dispatch("delete_everything", {}, cid)
        assert result == {
            "success": False,
            "error": "Function 'delete_everything' is not handled by the backend.",
        }

    def test_definitions_cover_every_tool(self):
        names = {d["function"]["name"] for d in TOOL_DEFINITIONS}
        assert names == {tool.value for tool in ToolName}
