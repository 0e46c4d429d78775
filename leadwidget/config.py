"""
Centralized configuration with environment variable overrides.

Assistant credentials, polling behaviour, widget identity, and lookup
endpoints are configurable here. Nothing is hardcoded in the flow
controller or the orchestrator.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from leadwidget.logging_context import LOG_FORMAT, exchange_log_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class AssistantConfig:
    """Hosted assistant credentials and run polling behaviour."""

    api_key: str = os.getenv("OPENAI_API_KEY", "")
    assistant_id: str = os.getenv("OPENAI_ASSISTANT_ID", "")
    poll_interval_sec: float = _safe_float("ASSISTANT_POLL_INTERVAL", "1.0")
    # 0 disables the caller-side timeout; the hosted service bounds the run.
    run_timeout_sec: float = _safe_float("ASSISTANT_RUN_TIMEOUT", "0")
    message_fetch_limit: int = _safe_int("ASSISTANT_MESSAGE_FETCH_LIMIT", "10")


@dataclass(frozen=True)
class WidgetSettings:
    """Widget identity and configuration-service location."""

    channel: str = os.getenv("WIDGET_CHANNEL", "website_widget")
    config_identifier: str = os.getenv("WIDGET_CONFIG_IDENTIFIER", "default")
    thread_storage_key: str = os.getenv("THREAD_STORAGE_KEY", "leadwidget_thread_id")
    config_base_url: str = os.getenv("WIDGET_CONFIG_BASE_URL", "")
    config_api_key: str = os.getenv("WIDGET_CONFIG_API_KEY", "")
    config_timeout_sec: float = _safe_float("WIDGET_CONFIG_TIMEOUT", "5.0")


@dataclass(frozen=True)
class GeoConfig:
    """IP geolocation endpoint used when a conversation is first recorded."""

    lookup_url: str = os.getenv("GEO_LOOKUP_URL", "http://ip-api.com/json/{ip}")
    timeout_sec: float = _safe_float("GEO_LOOKUP_TIMEOUT", "3.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    widget: WidgetSettings = field(default_factory=WidgetSettings)
    geo: GeoConfig = field(default_factory=GeoConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.assistant.poll_interval_sec <= 0:
        raise ValueError(
            f"ASSISTANT_POLL_INTERVAL must be > 0, got {config.assistant.poll_interval_sec}"
        )
    if config.assistant.run_timeout_sec < 0:
        raise ValueError(
            f"ASSISTANT_RUN_TIMEOUT must be >= 0, got {config.assistant.run_timeout_sec}"
        )
    if not 1 <= config.assistant.message_fetch_limit <= 100:
        raise ValueError(
            "ASSISTANT_MESSAGE_FETCH_LIMIT must be between 1 and 100, "
            f"got {config.assistant.message_fetch_limit}"
        )
    if not config.widget.channel.strip():
        raise ValueError("WIDGET_CHANNEL must not be empty")
    if not config.widget.thread_storage_key.strip():
        raise ValueError("THREAD_STORAGE_KEY must not be empty")
    if config.widget.config_timeout_sec <= 0:
        raise ValueError(
            f"WIDGET_CONFIG_TIMEOUT must be > 0, got {config.widget.config_timeout_sec}"
        )
    if "{ip}" not in config.geo.lookup_url:
        raise ValueError(
            f"GEO_LOOKUP_URL must contain an '{{ip}}' placeholder, got {config.geo.lookup_url!r}"
        )
    if config.geo.timeout_sec <= 0:
        raise ValueError(f"GEO_LOOKUP_TIMEOUT must be > 0, got {config.geo.timeout_sec}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[exchange_log_handler()],
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for channel '%s'", config.widget.channel)
    return config


# Singleton instance
settings = load_config()
