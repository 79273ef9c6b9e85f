"""
Tests for configuration and logging setup.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from backr.config import CollaborationSettings, DatabaseSettings, get_settings
from backr.logging_config import JsonFormatter, setup_logging


class TestSettings:
    """Test settings defaults and validation."""

    def test_collaboration_defaults(self):
        config = CollaborationSettings()
        assert config.type_match_points == 20
        assert config.complementary_points == 15
        assert config.keyword_max_points == 30
        assert config.backer_max_points == 35
        assert config.default_limit == 5
        assert config.max_limit == 10

    def test_collaboration_env_prefix(self, monkeypatch):
        monkeypatch.setenv("COLLAB_TYPE_MATCH_POINTS", "25")
        assert CollaborationSettings().type_match_points == 25

    def test_rejects_out_of_range_limit(self):
        with pytest.raises(ValidationError):
            CollaborationSettings(default_limit=0)

    def test_database_url_uses_asyncpg(self):
        assert DatabaseSettings(url="postgres://u:p@h/db").url == "postgresql+asyncpg://u:p@h/db"
        assert DatabaseSettings(url="postgresql://u:p@h/db").url == "postgresql+asyncpg://u:p@h/db"

    def test_sqlite_url_untouched(self):
        assert DatabaseSettings(url="sqlite+aiosqlite:///x.db").url == "sqlite+aiosqlite:///x.db"

    def test_settings_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    """Test logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_formatter(self):
        record = logging.LogRecord("backr.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "backr.test"

    def test_setup_writes_file(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(level="DEBUG", fmt="json", log_file=str(log_file))

        logging.getLogger("backr.test").info("written")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written"
        assert logging.getLogger().level == logging.DEBUG
