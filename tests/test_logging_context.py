"""Tests for the exchange ID logging context."""

import contextvars
import io
import logging

from leadwidget.logging_context import (
    LOG_FORMAT,
    ExchangeIdFilter,
    exchange_log_handler,
    get_exchange_id,
    get_exchange_logger,
    set_exchange_id,
)


def _record(logger: logging.Logger) -> logging.LogRecord:
    return logger.makeRecord(logger.name, logging.INFO, __file__, 1, "msg", (), None)


class TestExchangeId:
    def test_default_outside_an_exchange(self):
        assert contextvars.Context().run(get_exchange_id) == "NO_EXCHANGE_ID"

    def test_set_and_get(self):
        def run():
            set_exchange_id("EX-12345678")
            return get_exchange_id()

        assert contextvars.copy_context().run(run) == "EX-12345678"


class TestExchangeLogger:
    def test_exchange_id_attached(self):
        set_exchange_id("EX-test")
        logger = get_exchange_logger("leadwidget.tests.logging")
        record = _record(logger)
        for f in logger.filters:
            f.filter(record)
        assert record.exchange_id == "EX-test"

    def test_filter_added_once(self):
        get_exchange_logger("leadwidget.tests.once")
        logger = get_exchange_logger("leadwidget.tests.once")
        assert sum(isinstance(f, ExchangeIdFilter) for f in logger.filters) == 1


class TestExchangeLogHandler:
    def setup_method(self):
        self.stream = io.StringIO()
        self.handler = exchange_log_handler(self.stream)
        self.handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger = logging.getLogger("leadwidget.tests.handler")
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

    def teardown_method(self):
        self.logger.removeHandler(self.handler)
        self.logger.propagate = True

    def test_plain_logger_output_carries_id(self):
        def run():
            set_exchange_id("EX-abcdef12")
            self.logger.info("Polling run %s", "run_1")

        contextvars.copy_context().run(run)
        line = self.stream.getvalue()
        assert "[EX-abcdef12]: Polling run run_1" in line
        assert "[leadwidget.tests.handler] INFO" in line

    def test_default_id_when_unset(self):
        contextvars.Context().run(self.logger.info, "Widget starting")
        assert "[NO_EXCHANGE_ID]: Widget starting" in self.stream.getvalue()
