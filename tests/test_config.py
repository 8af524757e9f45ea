"""Tests for settings and logging configuration."""

from __future__ import annotations

import logging
import os

import pytest
from rich.logging import RichHandler

from expense_categorizer.config import DEFAULT_MODEL_PATH, Settings, configure_logging

_VARS = [
    "CATEGORIZER_MODEL_PATH",
    "CATEGORIZER_S3_BUCKET",
    "CATEGORIZER_S3_KEY",
    "CATEGORIZER_S3_REGION",
    "CATEGORIZER_LOG_LEVEL",
    "CATEGORIZER_ADMIN_TOKEN",
    "CATEGORIZER_API_PREFIX",
    "CATEGORIZER_DEBUG",
    "CATEGORIZER_CORS_ORIGINS",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings.from_env(dotenv=False)
        assert settings.model_path == DEFAULT_MODEL_PATH
        assert settings.s3_bucket is None
        assert settings.log_level == "INFO"
        assert settings.admin_token is None
        assert settings.api_prefix == "/api/categorize"
        assert not settings.debug
        assert settings.cors_origins == ("http://localhost:3000",)

    def test_from_environment(self, clean_env):
        clean_env.setenv("CATEGORIZER_MODEL_PATH", "/tmp/m.json")
        clean_env.setenv("CATEGORIZER_S3_BUCKET", "bucket")
        clean_env.setenv("CATEGORIZER_LOG_LEVEL", "debug")
        clean_env.setenv("CATEGORIZER_ADMIN_TOKEN", "secret")
        clean_env.setenv("CATEGORIZER_API_PREFIX", "/v1/categorize/")
        clean_env.setenv("CATEGORIZER_DEBUG", "true")
        clean_env.setenv("CATEGORIZER_CORS_ORIGINS", "http://a.test, http://b.test")

        settings = Settings.from_env(dotenv=False)
        assert settings.model_path == "/tmp/m.json"
        assert settings.s3_bucket == "bucket"
        assert settings.log_level == "DEBUG"
        assert settings.admin_token == "secret"
        assert settings.api_prefix == "/v1/categorize"
        assert settings.debug
        assert settings.cors_origins == ("http://a.test", "http://b.test")

    def test_empty_bucket_is_unset(self, clean_env):
        clean_env.setenv("CATEGORIZER_S3_BUCKET", "")
        assert Settings.from_env(dotenv=False).s3_bucket is None

    def test_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("CATEGORIZER_ADMIN_TOKEN=from-dotenv\n", encoding="utf-8")
        clean_env.chdir(tmp_path)
        try:
            assert Settings.from_env().admin_token == "from-dotenv"
        finally:
            os.environ.pop("CATEGORIZER_ADMIN_TOKEN", None)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Settings().model_path = "x"  # type: ignore[misc]


class TestConfigureLogging:

    def test_installs_rich_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("warning")
            assert root.level == logging.WARNING
            assert any(isinstance(h, RichHandler) for h in root.handlers)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
