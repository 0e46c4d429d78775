"""
Lead widget entry point.

Wires the flow controller to the hosted OpenAI assistant, or to the
offline scripted assistant for development.

Usage:
    Live assistant: python main.py live [visitor-ip]   (needs OPENAI_API_KEY, OPENAI_ASSISTANT_ID)
    Console mode:   python main.py console
"""

import asyncio
import logging
import sys
from pathlib import Path

from leadwidget.config import settings

logger = logging.getLogger(__name__)

SESSION_FILE = Path(".leadwidget_session.json")
CONSOLE_USER_AGENT = "leadwidget-console"


def _build_live_session(visitor_ip=None):
    """Console session backed by the real assistant and configuration services.

    ``visitor_ip`` stands in for the client address a web front end would
    forward; public addresses are geolocated when the conversation is created.
    """
    from console_demo import ConsoleSession
    from leadwidget.assistant.openai_service import OpenAIAssistantService
    from leadwidget.integrations.geo import IpApiGeoLookup
    from leadwidget.integrations.session_store import JsonFileSessionStore
    from leadwidget.integrations.widget_config import HttpWidgetConfigService

    if not settings.assistant.api_key or not settings.assistant.assistant_id:
        raise SystemExit("OPENAI_API_KEY and OPENAI_ASSISTANT_ID must be set for live mode.")

    return ConsoleSession(
        assistant_service=OpenAIAssistantService(),
        session_store=JsonFileSessionStore(SESSION_FILE),
        config_service=HttpWidgetConfigService() if settings.widget.config_base_url else None,
        geo_lookup=IpApiGeoLookup(),
        ip_address=visitor_ip,
        user_agent=CONSOLE_USER_AGENT,
    )


def _run_live_mode(visitor_ip=None) -> None:
    session = _build_live_session(visitor_ip)
    logger.info("Starting live session with assistant %s", settings.assistant.assistant_id)
    asyncio.run(session.run())


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession().run())


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "live":
        _run_live_mode(sys.argv[2] if len(sys.argv) > 2 else None)
    else:
        _run_console_mode()
