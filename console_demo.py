"""
Offline console demo: drives the chat widget controller in the terminal.

Uses the real flow controller, orchestrator, tool handlers, and
in-memory store, with the scripted offline assistant in place of the
hosted one. No API keys, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario callback
    python console_demo.py --scenario sample
"""

import argparse
import asyncio
from datetime import date, timedelta
from typing import Optional

from leadwidget.assistant.offline_service import OfflineAssistantService
from leadwidget.assistant.orchestrator import AssistantRunOrchestrator, AssistantService
from leadwidget.config import settings
from leadwidget.conversation.flow_controller import ConversationFlowController
from leadwidget.conversation.views import WidgetView
from leadwidget.integrations.events import LoggingEventSink
from leadwidget.integrations.geo import GeoLookupService
from leadwidget.integrations.persistence import InMemoryPersistenceStore
from leadwidget.integrations.session_store import InMemorySessionStore, SessionStore
from leadwidget.integrations.widget_config import StaticWidgetConfigService, WidgetConfigService
from leadwidget.schemas.chat_schema import MessageRole
from leadwidget.schemas.lead_schema import LeadKind
from leadwidget.schemas.widget_schema import WidgetConfig

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

ROLE_COLOURS = {
    MessageRole.USER: BLUE,
    MessageRole.ASSISTANT: GREEN,
    MessageRole.ERROR: RED,
}

DEMO_CONFIG = WidgetConfig(
    theme_color="#1d4ed8",
    initial_message="Hi! I can arrange a callback, help you find a product, or answer a question.",
    require_email_first=False,
)


def _tomorrow() -> date:
    return date.today() + timedelta(days=1)


class ConsoleSession:
    """Runs one widget session in the terminal."""

    # Each step is (controller method, argument). Arguments of None mean no argument.
    SCENARIOS: dict[str, list[tuple[str, object]]] = {
        "callback": [
            ("begin_callback_flow", None),
            ("submit_name", "Jane Doe"),
            ("submit_phone", "0412 345 678"),
            ("submit_enquiry", "Quote for bi-fold doors"),
            ("submit_date", "tomorrow"),
            ("select_time_slot", "morning"),
            ("submit_free_text", "Thanks!"),
        ],
        "enquiry": [
            ("begin_enquiry_flow", None),
            ("select_category", "windows"),
            ("select_subcategory", "smoothsash400"),
            ("select_resource", "techData"),
            ("submit_free_text", "Do these come in black?"),
        ],
        "sample": [
            ("begin_enquiry_flow", None),
            ("select_category", "doors"),
            ("select_subcategory", "designer"),
            ("select_resource", "sample"),
            ("submit_lead_capture", {
                "name": "Sam Lee", "email": "sam@example.com",
                "address": "1 High Street, Leeds",
            }),
        ],
    }

    def __init__(
        self,
        assistant_service: Optional[AssistantService] = None,
        session_store: Optional[SessionStore] = None,
        config_service: Optional[WidgetConfigService] = None,
        geo_lookup: Optional[GeoLookupService] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.store = InMemoryPersistenceStore()
        self.events = LoggingEventSink()
        offline = assistant_service is None
        self.orchestrator = AssistantRunOrchestrator(
            assistant_service or OfflineAssistantService(),
            self.store,
            geo_lookup=geo_lookup,
            assistant_id=settings.assistant.assistant_id or "offline-assistant",
            poll_interval=0.01 if offline else settings.assistant.poll_interval_sec,
        )
        self.controller = ConversationFlowController(
            exchange_client=self.orchestrator,
            config_service=config_service or StaticWidgetConfigService(
                {settings.widget.config_identifier: DEMO_CONFIG}
            ),
            session_store=session_store or InMemorySessionStore(),
            event_sink=self.events,
            open_url=lambda url: self.system_log(f"open {url}"),
            start_url="console://demo",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._printed = 0

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def flush_messages(self) -> None:
        messages = self.controller.messages
        for message in messages[self._printed:]:
            colour = ROLE_COLOURS[message.role]
            print(f"{colour}{BOLD}[{message.role.value}]{RESET} {colour}{message.text}{RESET}")
        self._printed = len(messages)
        for notice in self.controller.pop_notices():
            print(f"{YELLOW}  ! {notice}{RESET}")
        for field_name, error in self.controller.field_errors.items():
            print(f"{YELLOW}  ! {field_name}: {error}{RESET}")

    def show_view(self) -> WidgetView:
        view = self.controller.current_view()
        self.system_log(f"Mode: {view.mode.value}")
        for index, option in enumerate(view.options, start=1):
            print(f"   {index}. {option.label}")
        if view.input_field:
            self.system_log(f"Input: {view.input_field}")
        if view.show_date_picker:
            self.system_log("Input: date (YYYY-MM-DD or 'tomorrow')")
        if view.lead_form:
            self.system_log(f"Form: {view.lead_form.value} (name, email[, phone][, address])")
        return view

    async def perform(self, action: str, argument: object = None) -> bool:
        if action == "submit_date":
            argument = _tomorrow() if argument == "tomorrow" else date.fromisoformat(str(argument))
        if action == "submit_lead_capture":
            kind = (
                LeadKind.SAMPLE
                if self.controller.mode.value == "LEAD_CAPTURE_SAMPLE_FORM"
                else LeadKind.CONTACT
            )
            result = await self.controller.submit_lead_capture(kind, argument)
            return result
        method = getattr(self.controller, action)
        result = method() if argument is None else method(argument)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    async def run_scenario(self, scenario: str) -> None:
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print(f"\n{BOLD}{'=' * 60}\n  LEAD WIDGET - Scenario: {scenario}\n{'=' * 60}{RESET}\n")
        await self.controller.start()
        self.flush_messages()
        for action, argument in steps:
            self.system_log(f"{action}({argument if argument is not None else ''})")
            await self.perform(action, argument)
            self.flush_messages()

        self._print_summary(scenario)

    def _print_summary(self, label: str) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  '{label}' complete.{RESET}")
        print(f"{DIM}  Mode trace: {' -> '.join(self.controller.state_machine.get_mode_trace())}{RESET}")
        print(f"{DIM}  Leads stored: {len(self.store.leads)}{RESET}")
        print(f"{DIM}  Events: {[e.event_type for e in self.events.events]}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def _read_action(self, view: WidgetView, raw: str) -> None:
        if view.contact_gate:
            self.controller.submit_contact_email(raw)
            return
        if view.options and raw.isdigit() and 1 <= int(raw) <= len(view.options):
            option = view.options[int(raw) - 1]
            await self.perform(option.action, option.key)
            return
        if view.show_date_picker:
            await self.perform("submit_date", raw)
            return
        if view.lead_form:
            parts = [p.strip() for p in raw.split(",")]
            keys = ["name", "email", "phone", "address"]
            await self.perform("submit_lead_capture", dict(zip(keys, parts)))
            return
        actions = {
            "name": "submit_name",
            "phone": "submit_phone",
            "enquiry": "submit_enquiry",
            "message": "submit_free_text",
        }
        if view.input_field in actions:
            await self.perform(actions[view.input_field], raw)
            return
        self.system_log("Pick one of the numbered options.")

    async def run(self) -> None:
        print(f"\n{BOLD}{'=' * 60}\n  LEAD WIDGET - Console Demo\n  Type 'quit' to exit\n{'=' * 60}{RESET}\n")
        await self.controller.start()
        self.flush_messages()
        while True:
            view = self.show_view()
            raw = (await asyncio.to_thread(input, f"\n{BLUE}> {RESET}")).strip()
            if not raw:
                continue
            if raw.lower() in ("quit", "exit", "q"):
                break
            try:
                await self._read_action(view, raw)
            except ValueError as e:
                print(f"{RED}  {e}{RESET}")
            self.flush_messages()
        self._print_summary("Session")


def main() -> None:
    parser = argparse.ArgumentParser(description="Lead widget console demo")
    parser.add_argument(
        "--scenario",
        choices=list(ConsoleSession.SCENARIOS.keys()),
        help="Auto-play a pre-scripted scenario",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
