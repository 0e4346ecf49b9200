"""Tests for the JSON log formatter.

Tests verify:
- Records render as single-line JSON with the fixed top-level keys
- Trace ID and operation are carried through when present
- Extra fields are collected under "context"
- Exceptions include type, message and traceback
"""

import json
import logging
import sys
from datetime import datetime

import pytest

from libs.common.logging.formatter import JSONFormatter


def _record(msg: str = "Test message", level: int = logging.INFO, args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="/app/orchestrator.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
        func="execute",
    )


@pytest.fixture()
def formatter() -> JSONFormatter:
    return JSONFormatter(service_name="supply-chain-gateway")


class TestJSONFormatter:
    def test_basic_log_format(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.trace_id = "abc-123"
        record.operation = "addDrug"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["level"] == "INFO"
        assert log_dict["service"] == "supply-chain-gateway"
        assert log_dict["trace_id"] == "abc-123"
        assert log_dict["operation"] == "addDrug"
        assert log_dict["message"] == "Test message"
        assert "context" not in log_dict

    def test_timestamp_format(self, formatter: JSONFormatter) -> None:
        timestamp = json.loads(formatter.format(_record()))["timestamp"]

        assert timestamp.endswith("Z")
        datetime.strptime(timestamp, "%Y-%m-%dT%H:%M:%S.%fZ")
        assert len(timestamp.split(".")[1]) == 4  # milliseconds + Z

    def test_missing_request_context(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        assert log_dict["trace_id"] is None
        assert log_dict["operation"] is None

    def test_explicit_context_dict(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.context = {"tx_hash": "0x9f", "block_number": 42}

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"tx_hash": "0x9f", "block_number": 42}

    def test_extra_fields_as_context(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.kind = "EstimationError"
        record.status_code = 422

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"kind": "EstimationError", "status_code": 422}

    def test_no_context_when_disabled(self) -> None:
        record = _record()
        record.kind = "EstimationError"

        log_dict = json.loads(JSONFormatter(service_name="test", include_context=False).format(record))

        assert "context" not in log_dict

    def test_non_serializable_context_uses_str(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.context = {"signer": object()}

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"]["signer"].startswith("<object object")

    def test_exception_logging(self, formatter: JSONFormatter) -> None:
        try:
            raise ValueError("bad ordinal")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_dict = json.loads(formatter.format(record))

        assert log_dict["exception"]["type"] == "ValueError"
        assert log_dict["exception"]["message"] == "bad ordinal"
        assert "Traceback" in log_dict["exception"]["traceback"]

    def test_source_location(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        assert log_dict["source"] == {
            "file": "/app/orchestrator.py",
            "line": 42,
            "function": "execute",
        }

    def test_message_with_args(self, formatter: JSONFormatter) -> None:
        record = _record(msg="%s included in block %d", args=("addDrug", 7))

        assert json.loads(formatter.format(record))["message"] == "addDrug included in block 7"
