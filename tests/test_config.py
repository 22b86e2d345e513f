"""Settings loading and logging setup."""

import json
import logging
from unittest.mock import patch

from hub.config import CacheSettings, DatabaseSettings, Settings
from hub.logging_config import JSONFormatter, setup_logging


class TestSettings:
    """Settings come from the environment with working defaults."""

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            s = Settings(_env_file=None)
        assert s.app_name == "Job Candidate Hub"
        assert s.api_prefix == "/api"
        assert s.cache.ttl_seconds == 600
        assert s.logging.format == "json"
        assert s.db.url.startswith("postgresql+asyncpg://")

    def test_nested_env_prefixes(self):
        env = {"CACHE_TTL_SECONDS": "30", "CACHE_MAX_ENTRIES": "5", "DB_ECHO": "true"}
        with patch.dict("os.environ", env, clear=True):
            assert CacheSettings().ttl_seconds == 30
            assert CacheSettings().max_entries == 5
            assert DatabaseSettings().echo is True

    def test_plain_postgres_url_gets_async_driver(self):
        with patch.dict("os.environ", {"DB_URL": "postgresql://u:p@db:5432/hub"}, clear=True):
            assert DatabaseSettings().url == "postgresql+asyncpg://u:p@db:5432/hub"


class TestLogging:
    """Root logger gets exactly one formatter-bearing handler per setup call."""

    def test_text_format(self):
        setup_logging(level="DEBUG", fmt="text", log_file="")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        fmt = root.handlers[0].formatter._fmt
        assert "%(levelname)" in fmt
        assert "%(name)" in fmt

    def test_json_format_is_idempotent(self):
        setup_logging(level="INFO", fmt="json", log_file="")
        setup_logging(level="INFO", fmt="json", log_file="")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_json_formatter_includes_extras(self):
        record = logging.LogRecord("hub.test", logging.INFO, __file__, 1, "Created candidate 3", None, None)
        record.candidate_id = 3
        record.operation = "insert"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "Created candidate 3"
        assert payload["candidate_id"] == 3
        assert payload["operation"] == "insert"
        assert payload["logger"] == "hub.test"
