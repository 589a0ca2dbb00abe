"""
Unit tests for configuration and logging setup.
"""

import logging
import os

import json_log_formatter
import pytest
from pydantic import ValidationError

from flatdoc.config import StoreSettings
from flatdoc.logging_setup import setup_logging


@pytest.fixture
def clean_env(monkeypatch):
    """Remove FLATDOC_* variables from the environment."""
    for key in list(os.environ):
        if key.startswith("FLATDOC_"):
            monkeypatch.delenv(key)


@pytest.fixture
def root_handlers():
    """Restore root logger state after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestStoreSettings:
    """Tests for StoreSettings."""

    def test_defaults(self, clean_env):
        """Defaults suit local development."""
        settings = StoreSettings()

        assert settings.name == "flatdoc.db"
        assert settings.results_as_hash is False
        assert settings.atomic_writes is False
        assert settings.legacy_paths is False
        assert settings.log_format == "text"

    def test_from_env(self, clean_env, monkeypatch):
        """Settings load from FLATDOC_ variables."""
        monkeypatch.setenv("FLATDOC_NAME", "/tmp/other.db")
        monkeypatch.setenv("FLATDOC_RESULTS_AS_HASH", "true")
        monkeypatch.setenv("FLATDOC_BUSY_TIMEOUT_MS", "250")

        settings = StoreSettings()

        assert settings.name == "/tmp/other.db"
        assert settings.results_as_hash is True
        assert settings.busy_timeout_ms == 250

    def test_explicit_values_win(self, clean_env, monkeypatch):
        """Constructor arguments override the environment."""
        monkeypatch.setenv("FLATDOC_NAME", "/tmp/other.db")

        assert StoreSettings(name="mine.db").name == "mine.db"

    def test_invalid_log_format(self, clean_env):
        """Unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            StoreSettings(log_format="xml")

    def test_log_format_case_insensitive(self, clean_env):
        """Log format is normalized to lower case."""
        assert StoreSettings(log_format="JSON").log_format == "json"

    def test_negative_timeout(self, clean_env):
        """Negative busy timeout is rejected."""
        with pytest.raises(ValidationError):
            StoreSettings(busy_timeout_ms=-1)

    def test_log_config(self, clean_env, caplog):
        """log_config emits one INFO record."""
        with caplog.at_level(logging.INFO, logger="flatdoc.config"):
            StoreSettings(name="x.db").log_config()

        assert any(r.message == "Store configuration loaded" for r in caplog.records)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_text_format(self, clean_env, root_handlers):
        """Text format installs a plain formatter."""
        setup_logging(StoreSettings(log_level="DEBUG"))

        assert root_handlers.level == logging.DEBUG
        assert len(root_handlers.handlers) == 1
        formatter = root_handlers.handlers[0].formatter
        assert not isinstance(formatter, json_log_formatter.JSONFormatter)

    def test_json_format(self, clean_env, root_handlers):
        """JSON format installs the JSON formatter."""
        setup_logging(StoreSettings(log_format="json", log_level="warning"))

        assert root_handlers.level == logging.WARNING
        formatter = root_handlers.handlers[0].formatter
        assert isinstance(formatter, json_log_formatter.JSONFormatter)
