"""Tests for webhook_receiver.config and webhook_receiver.logging_config."""

from __future__ import annotations

import logging

import pytest

from webhook_receiver.config import Settings, get_settings
from webhook_receiver.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "PORT",
        "RAILWAY_STATIC_URL",
        "WEBHOOK_RECEIVER_PORT",
        "WEBHOOK_RECEIVER_HOST",
        "WEBHOOK_RECEIVER_LOG_LEVEL",
        "WEBHOOK_RECEIVER_PUBLIC_URL",
    ):
        monkeypatch.delenv(var, raising=False)


class TestSettings:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.port == 4000
        assert s.host == "0.0.0.0"
        assert s.log_level == "INFO"
        assert s.base_url == "http://localhost:4000"

    def test_plain_port_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert Settings(_env_file=None).port == 8080

    def test_prefixed_port_env(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_RECEIVER_PORT", "9090")
        assert Settings(_env_file=None).port == 9090

    def test_prefixed_fields(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_RECEIVER_HOST", "127.0.0.1")
        monkeypatch.setenv("WEBHOOK_RECEIVER_LOG_LEVEL", "DEBUG")
        s = Settings(_env_file=None)
        assert s.host == "127.0.0.1"
        assert s.log_level == "DEBUG"

    def test_railway_url_used_as_public_url(self, monkeypatch):
        monkeypatch.setenv("RAILWAY_STATIC_URL", "https://hooks.example.app")
        s = Settings(_env_file=None)
        assert s.public_url == "https://hooks.example.app"
        assert s.base_url == "https://hooks.example.app"

    def test_init_kwargs_by_field_name(self):
        s = Settings(_env_file=None, port=5001, public_url="")
        assert s.port == 5001

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("WEBHOOK_RECEIVER_PORT=7070\n")
        assert Settings(_env_file=env).port == 7070

    def test_get_settings_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "6060")
        assert get_settings().port == 6060


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def _ours(self):
        return [h for h in logging.getLogger().handlers if getattr(h, "_webhook_receiver", False)]

    def test_installs_single_handler(self):
        configure_logging("DEBUG")
        configure_logging("WARNING")
        assert len(self._ours()) == 1
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO

    def test_accepts_int_level(self):
        configure_logging(logging.ERROR)
        assert logging.getLogger().level == logging.ERROR
