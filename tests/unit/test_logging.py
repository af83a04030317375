from __future__ import annotations

import json
import logging
import sys

from bulk_migrate.utils.logging import (
    NOISY_LOGGERS,
    ConsoleFormatter,
    _json_formatter,
    configure_logging,
    get_logger,
)

EXPECTED_ATTEMPTED = 10
EXPECTED_CONCURRENCY = 4


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_uses_run_log_keys_and_promotes_extra_fields() -> None:
    record = _record()
    record.attempted = EXPECTED_ATTEMPTED
    record.plugin = "structured-metadata-mapper"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "info"
    assert payload["logger"] == "test.logger"
    assert payload["msg"] == "hello"
    assert payload["time"].endswith("+00:00")
    assert payload["attempted"] == EXPECTED_ATTEMPTED
    assert payload["plugin"] == "structured-metadata-mapper"


def test_json_formatter_supports_nested_extra_field() -> None:
    record = _record()
    record.extra = {"concurrency": EXPECTED_CONCURRENCY}

    payload = json.loads(_json_formatter(record))

    assert payload["concurrency"] == EXPECTED_CONCURRENCY
    assert "extra" not in payload


def test_json_formatter_renders_exceptions_and_unserialisable_values() -> None:
    try:
        raise ValueError("bad row")
    except ValueError:
        record = logging.LogRecord(
            "test.logger", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )
    record.path = object()

    payload = json.loads(_json_formatter(record))

    assert "ValueError: bad row" in payload["exc_info"]
    assert payload["path"].startswith("<object")


def test_console_formatter_appends_extra_fields() -> None:
    record = _record("Starting migration")
    record.concurrency = EXPECTED_CONCURRENCY
    record.steps = ["structured-metadata-mapper"]
    record.upload_options = {"notes": "x" * 200}

    line = ConsoleFormatter().format(record)

    assert "| INFO | test.logger | Starting migration | concurrency=4 " in line
    assert 'steps=["structured-metadata-mapper"]' in line
    assert line.endswith("...")


def test_console_formatter_without_extra_fields() -> None:
    line = ConsoleFormatter().format(_record("plain"))

    assert line.endswith("| plain")


def test_configure_logging_sets_root_level_and_quiets_http_stack() -> None:
    configure_logging(level="debug", json_logs=True)

    assert logging.getLogger().level == logging.DEBUG
    assert get_logger("bulk_migrate.test").getEffectiveLevel() == logging.DEBUG
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    configure_logging(level="INFO")
