"""
Unit tests for request sanitization, rate limit helpers, bearer parsing
and log redaction.
"""

import logging

import pytest
from fastapi import HTTPException

from zesty.auth.dependencies import extract_bearer_token
from zesty.utils.logging import REDACTED, SecretRedactionFilter, get_logger
from zesty.utils.rate_limit import RateLimitExceededError, RateLimitGuard
from zesty.utils.sanitize import sanitize_query_string, strip_angle_brackets


def test_strip_angle_brackets_nested():
    payload = {
        "name": "<b>Inception</b>",
        "items": ["<x>", 3, None, {"deep": "a<b>c"}],
        "<key>": True,
    }

    assert strip_angle_brackets(payload) == {
        "name": "bInception/b",
        "items": ["x", 3, None, {"deep": "abc"}],
        "<key>": True,
    }


def test_query_string_without_brackets_is_untouched():
    raw = b"query=Inception&types=urn%3Aentity%3Amovie"

    assert sanitize_query_string(raw) is raw


def test_query_string_values_are_stripped():
    cleaned = sanitize_query_string(b"query=%3Cscript%3Ealert%3C%2Fscript%3E&type=movie")

    assert cleaned == b"query=scriptalert%2Fscript&type=movie"


def test_guard_allows_requests_within_window():
    guard = RateLimitGuard("3/minute")

    for _ in range(3):
        guard.hit("10.0.0.1")


def test_guard_rejects_request_over_window():
    guard = RateLimitGuard("1/minute")
    guard.hit("10.0.0.1")

    with pytest.raises(RateLimitExceededError) as exc_info:
        guard.hit("10.0.0.1")

    assert 1 <= exc_info.value.retry_after <= 60
    assert exc_info.value.limit == "1/minute"


def test_guard_counts_each_client_separately():
    guard = RateLimitGuard("1/minute")

    guard.hit("10.0.0.1")
    guard.hit("10.0.0.2")


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer a b"])
def test_malformed_authorization_is_401(header):
    with pytest.raises(HTTPException) as exc_info:
        extract_bearer_token(header)

    assert exc_info.value.status_code == 401


def test_bearer_token_is_extracted():
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_secret_redaction_filter_masks_keys():
    record = logging.LogRecord(
        "zesty.test", logging.ERROR, __file__, 1,
        "Request failed with key %s", ("qloo-secret-key",), None,
    )

    SecretRedactionFilter(["qloo-secret-key", ""]).filter(record)

    assert record.getMessage() == f"Request failed with key {REDACTED}"


def test_get_logger_attaches_redaction_filter_once():
    logger = get_logger("zesty.tests.redaction")
    get_logger("zesty.tests.redaction")

    assert sum(isinstance(f, SecretRedactionFilter) for f in logger.filters) == 1
