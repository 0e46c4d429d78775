"""Tests for the OpenAI Assistants adapter, using stand-in SDK objects."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from leadwidget.assistant.openai_service import (
    OpenAIAssistantService,
    convert_message,
    convert_run,
)
from leadwidget.schemas.assistant_schema import RunStatus, ToolOutput


def _sdk_run(status, run_id="run_1", tool_calls=None, last_error=None):
    required = None
    if tool_calls is not None:
        required = SimpleNamespace(submit_tool_outputs=SimpleNamespace(tool_calls=tool_calls))
    return SimpleNamespace(
        id=run_id,
        status=status,
        required_action=required,
        last_error=SimpleNamespace(message=last_error) if last_error else None,
    )


def _sdk_tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def _sdk_text(value, annotations=()):
    return SimpleNamespace(type="text", text=SimpleNamespace(value=value, annotations=list(annotations)))


class _Annotation:
    def model_dump(self):
        return {"type": "file_citation", "text": "【4:2†source】"}


def _fake_client():
    threads = SimpleNamespace(
        create=AsyncMock(return_value=SimpleNamespace(id="thread_abc")),
        messages=SimpleNamespace(create=AsyncMock(), list=AsyncMock()),
        runs=SimpleNamespace(
            create=AsyncMock(return_value=_sdk_run("queued")),
            retrieve=AsyncMock(return_value=_sdk_run("in_progress")),
            submit_tool_outputs=AsyncMock(return_value=_sdk_run("in_progress")),
        ),
    )
    return SimpleNamespace(beta=SimpleNamespace(threads=threads))


class TestConvertRun:
    @pytest.mark.parametrize("raw,expected", [
        ("queued", RunStatus.QUEUED),
        ("in_progress", RunStatus.IN_PROGRESS),
        ("cancelling", RunStatus.IN_PROGRESS),
        ("requires_action", RunStatus.REQUIRES_ACTION),
        ("completed", RunStatus.COMPLETED),
        ("failed", RunStatus.FAILED),
        ("incomplete", RunStatus.FAILED),
        ("cancelled", RunStatus.CANCELLED),
        ("expired", RunStatus.EXPIRED),
        ("something_new", RunStatus.FAILED),
    ])
    def test_status_mapping(self, raw, expected):
        assert convert_run(_sdk_run(raw)).status == expected

    def test_tool_calls_extracted(self):
        run = convert_run(_sdk_run("requires_action", tool_calls=[
            _sdk_tool_call("call_1", "capture_lead", '{"email": "a@b.co"}'),
            _sdk_tool_call("call_2", "schedule_callback", None),
        ]))
        assert [(c.id, c.function_name) for c in run.required_tool_calls] == [
            ("call_1", "capture_lead"),
            ("call_2", "schedule_callback"),
        ]
        assert run.required_tool_calls[0].arguments == '{"email": "a@b.co"}'
        assert run.required_tool_calls[1].arguments == "{}"

    def test_last_error_message(self):
        run = convert_run(_sdk_run("failed", last_error="Rate limit reached"))
        assert run.last_error == "Rate limit reached"


class TestConvertMessage:
    def test_text_blocks_only(self):
        message = SimpleNamespace(
            id="msg_1",
            role="assistant",
            run_id="run_1",
            content=[
                _sdk_text("Hello【4:2†source】", [_Annotation()]),
                SimpleNamespace(type="image_file"),
            ],
        )
        converted = convert_message(message)
        assert converted.run_id == "run_1"
        assert len(converted.content) == 1
        assert converted.content[0].text == "Hello【4:2†source】"
        assert converted.content[0].annotations == [{"type": "file_citation", "text": "【4:2†source】"}]


class TestOpenAIAssistantService:
    def setup_method(self):
        self.client = _fake_client()
        self.service = OpenAIAssistantService(client=self.client)
        self.threads = self.client.beta.threads

    @pytest.mark.asyncio
    async def test_create_thread(self):
        assert await self.service.create_thread() == "thread_abc"

    @pytest.mark.asyncio
    async def test_add_message(self):
        await self.service.add_message("thread_abc", "user", "hello")
        self.threads.messages.create.assert_awaited_once_with(
            "thread_abc", role="user", content="hello"
        )

    @pytest.mark.asyncio
    async def test_run_calls(self):
        created = await self.service.create_run("thread_abc", "asst_1")
        assert created.status == RunStatus.QUEUED
        self.threads.runs.create.assert_awaited_once_with("thread_abc", assistant_id="asst_1")

        polled = await self.service.get_run("thread_abc", "run_1")
        assert polled.status == RunStatus.IN_PROGRESS
        self.threads.runs.retrieve.assert_awaited_once_with("run_1", thread_id="thread_abc")

    @pytest.mark.asyncio
    async def test_submit_tool_outputs(self):
        await self.service.submit_tool_outputs(
            "thread_abc", "run_1", [ToolOutput(tool_call_id="call_1", output='{"success": true}')]
        )
        self.threads.runs.submit_tool_outputs.assert_awaited_once_with(
            "run_1",
            thread_id="thread_abc",
            tool_outputs=[{"tool_call_id": "call_1", "output": '{"success": true}'}],
        )

    @pytest.mark.asyncio
    async def test_list_messages(self):
        self.threads.messages.list.return_value = SimpleNamespace(data=[
            SimpleNamespace(id="msg_2", role="assistant", run_id="run_1", content=[_sdk_text("Hi")]),
        ])
        messages = await self.service.list_messages("thread_abc", order="desc", limit=5)
        self.threads.messages.list.assert_awaited_once_with("thread_abc", order="desc", limit=5)
        assert [m.content[0].text for m in messages] == ["Hi"]
