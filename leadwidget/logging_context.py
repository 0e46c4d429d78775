"""Exchange ID logging context for tracing one chat exchange across modules.

Provides an exchange-aware logger that attaches a correlation ID to every
log record, so a single utterance can be followed from thread creation
through tool dispatch to the final reply.

Usage:
    from leadwidget.logging_context import get_exchange_logger, set_exchange_id

    set_exchange_id("EX-1a2b3c")
    logger = get_exchange_logger(__name__)
    logger.info("Polling run")  # record.exchange_id == "EX-1a2b3c"

Records that pass through exchange_log_handler() always carry
``exchange_id``, so LOG_FORMAT is safe for loggers from any module.
"""

import logging
from contextvars import ContextVar
from typing import IO, Optional

_exchange_id: ContextVar[str] = ContextVar("exchange_id", default="NO_EXCHANGE_ID")

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(exchange_id)s]: %(message)s"


def set_exchange_id(exchange_id: str) -> None:
    """Set the correlation ID for the current async context."""
    _exchange_id.set(exchange_id)


def get_exchange_id() -> str:
    """Retrieve the current correlation ID."""
    return _exchange_id.get()


class ExchangeIdFilter(logging.Filter):
    """Injects exchange_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.exchange_id = get_exchange_id()  # type: ignore[attr-defined]
        return True


def get_exchange_logger(name: str) -> logging.Logger:
    """Return a logger with the ExchangeIdFilter attached.

    The filter adds ``exchange_id`` to each record so formatters can
    include ``%(exchange_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, ExchangeIdFilter) for f in logger.filters):
        logger.addFilter(ExchangeIdFilter())
    return logger


def exchange_log_handler(stream: Optional[IO[str]] = None) -> logging.Handler:
    """Stream handler that stamps every record it emits with the exchange ID."""
    handler = logging.StreamHandler(stream)
    handler.addFilter(ExchangeIdFilter())
    return handler
