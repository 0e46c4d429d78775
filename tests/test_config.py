"""Tests for configuration loading and validation."""

import pytest

from leadwidget.config import AppConfig, _validate_config


def _config_with(section: str, **overrides) -> AppConfig:
    """Default config with fields of one frozen section replaced."""
    config = AppConfig()
    target = getattr(config, section)
    for name, value in overrides.items():
        object.__setattr__(target, name, value)
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.widget.channel == "website_widget"
        assert "{ip}" in config.geo.lookup_url
        assert config.assistant.message_fetch_limit == 10

    @pytest.mark.parametrize("value", [0, -1.0])
    def test_invalid_poll_interval(self, value):
        config = _config_with("assistant", poll_interval_sec=value)
        with pytest.raises(ValueError, match="ASSISTANT_POLL_INTERVAL"):
            _validate_config(config)

    def test_negative_run_timeout(self):
        config = _config_with("assistant", run_timeout_sec=-5.0)
        with pytest.raises(ValueError, match="ASSISTANT_RUN_TIMEOUT"):
            _validate_config(config)

    @pytest.mark.parametrize("value", [0, 101])
    def test_fetch_limit_out_of_range(self, value):
        config = _config_with("assistant", message_fetch_limit=value)
        with pytest.raises(ValueError, match="ASSISTANT_MESSAGE_FETCH_LIMIT"):
            _validate_config(config)

    def test_blank_channel(self):
        config = _config_with("widget", channel="  ")
        with pytest.raises(ValueError, match="WIDGET_CHANNEL"):
            _validate_config(config)

    def test_blank_storage_key(self):
        config = _config_with("widget", thread_storage_key="")
        with pytest.raises(ValueError, match="THREAD_STORAGE_KEY"):
            _validate_config(config)

    def test_geo_url_needs_placeholder(self):
        config = _config_with("geo", lookup_url="http://ip-api.com/json/")
        with pytest.raises(ValueError, match="GEO_LOOKUP_URL"):
            _validate_config(config)

    def test_safe_int_parsing(self):
        from leadwidget.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        from leadwidget.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from leadwidget.config import _safe_int

        monkeypatch.setenv("LEADWIDGET_TEST_INT", "ten")
        with pytest.raises(ValueError, match="LEADWIDGET_TEST_INT"):
            _safe_int("LEADWIDGET_TEST_INT", "1")
