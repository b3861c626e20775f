"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from mealweek.logging_utils import JsonFormatter, configure_logging


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="mealweek.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "top-secret-token"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    record = _record("Authorization header Bearer %s", secret)

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert secret not in formatted
    assert "[redacted]" in formatted


def test_llm_api_key_in_query_string_is_redacted():
    configure_logging("INFO", "plain", ["", "sk-live-123"])
    handler = logging.getLogger().handlers[0]
    record = _record("POST https://llm.test/v1?api_token=abc key=%s", "sk-live-123")

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert "abc" not in formatted
    assert "sk-live-123" not in formatted


def test_json_formatter_includes_plan_context():
    record = _record("Generated recipe %s", 7, user_id=1, plan_id=2, slot_id=3)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Generated recipe 7"
    assert (payload["user_id"], payload["plan_id"], payload["slot_id"]) == (1, 2, 3)
    assert "request_id" not in payload
