"""
Tests for the command-line entry point and logging setup.
"""
import json
import logging
import sys

import pytest
from pythonjsonlogger import jsonlogger

from hunta import cli
from hunta.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def mock_env(monkeypatch):
    """Offline sources and no changes to the test run's logging."""
    monkeypatch.setenv("HUNTA_USE_MOCK_SOURCES", "always")
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


class TestMain:
    """Tests for hunta's main()."""

    def test_json_output(self, mock_env, capsys):
        assert cli.main(["strymon ob1", "--no-llm", "--json"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["metadata"]["query"] == "strymon ob1"
        # 5 mock listings per term, 5 terms
        assert output["metadata"]["total_results"] == 25
        assert {item["source"] for item in output["items"]} == {"ebay", "gumtree", "facebook", "cashconverters"}

    def test_table_output(self, mock_env, capsys):
        assert cli.main(["strymon ob1", "--no-llm", "--sources", "ebay", "--currency", "USD"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("5 results for 'strymon ob1'")
        assert "$229" in out

    def test_blank_term(self, mock_env, capsys):
        assert cli.main(["   ", "--no-llm"]) == 2
        assert "Invalid search" in capsys.readouterr().err

    def test_unknown_source(self, mock_env):
        assert cli.main(["strymon ob1", "--no-llm", "--sources", "craigslist"]) == 1

    def test_max_pages_validated(self, mock_env):
        with pytest.raises(SystemExit):
            cli.main(["strymon ob1", "--max-pages", "0"])


class TestLogging:
    """Tests for log formatting."""

    def test_json_formatter(self):
        record = logging.makeLogRecord({
            "name": "hunta.service",
            "levelname": "INFO",
            "msg": "Search %s done",
            "args": ("abc",),
            "run_id": "abc",
        })

        entry = json.loads(JsonFormatter("%(message)s").format(record))

        assert entry["message"] == "Search abc done"
        assert entry["timestamp"].endswith("+00:00")
        assert entry["logger"] == "hunta.service"
        assert entry["level"] == "INFO"
        assert entry["run_id"] == "abc"

    def test_configure_logging(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            configure_logging("debug", json_format=True)

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad page")
        except ValueError:
            record = logging.getLogger("hunta.client").makeRecord(
                "hunta.client", logging.ERROR, __file__, 1, "Parse failed", (), sys.exc_info()
            )

        entry = json.loads(JsonFormatter("%(message)s").format(record))

        assert entry["level"] == "ERROR"
        assert "ValueError: bad page" in entry["exc_info"]
