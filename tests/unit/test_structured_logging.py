"""
Unit tests for structured logging
"""

import json
import logging

from ptgeosite.services.structured_logging import (
    ContextFormatter,
    CorrelationContext,
    JSONLogFormatter,
    get_backend,
    get_run_id,
    get_structured_logger,
)


def make_record(message: str = "hello", **attrs) -> logging.LogRecord:
    record = logging.LogRecord("ptgeosite.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_correlation_context_sets_and_restores():
    assert get_backend() is None

    with CorrelationContext(run_id="run1"):
        with CorrelationContext(backend="qbittorrent://admin@qb:8080"):
            assert get_run_id() == "run1"
            assert get_backend() == "qbittorrent://admin@qb:8080"
        assert get_backend() is None
        assert get_run_id() == "run1"

    assert get_run_id() is None


def test_json_formatter_includes_context_and_extra():
    formatter = JSONLogFormatter()

    with CorrelationContext(run_id="run1", backend="transmission://user@tr:9091"):
        line = formatter.format(make_record("collected", extra_data={"found": 3}))

    data = json.loads(line)
    assert data["message"] == "collected"
    assert data["level"] == "INFO"
    assert data["run_id"] == "run1"
    assert data["backend"] == "transmission://user@tr:9091"
    assert data["extra"] == {"found": 3}
    assert data["timestamp"].endswith("Z")


def test_context_formatter_prefixes_backend():
    formatter = ContextFormatter("%(message)s")

    assert formatter.format(make_record()) == "hello"
    with CorrelationContext(backend="qbittorrent://admin@qb:8080"):
        assert formatter.format(make_record()) == "[qbittorrent://admin@qb:8080] hello"


def test_adapter_moves_extra_data(caplog):
    logger = get_structured_logger("ptgeosite.test")

    with caplog.at_level(logging.INFO, logger="ptgeosite.test"):
        logger.info("wrote artifact", extra_data={"bytes": 10})

    assert caplog.records[-1].extra_data == {"bytes": 10}
