"""Tests for the shared HTTP and logging helpers."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import HttpClientError, safe_get
from common.logging_utils import (
    Timer,
    configure_logging,
    extra_context,
    is_debug_enabled,
    redact,
    safe_url,
)
from constants import Constants


class TestSafeGet:
    """Tests for safe_get error translation."""

    @patch("common.http_client.requests.get")
    def test_returns_response(self, mock_get):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_get.return_value = mock_response

        assert safe_get("https://example.com/a.js", context="entry") is mock_response
        _, kwargs = mock_get.call_args
        assert kwargs["timeout"] == Constants.REQUEST_TIMEOUT
        assert kwargs["headers"]["User-Agent"] == Constants.USER_AGENT

    @patch("common.http_client.requests.get", side_effect=requests.Timeout("slow"))
    def test_timeout_raises(self, _mock_get):
        with pytest.raises(HttpClientError) as excinfo:
            safe_get("https://example.com/a.js", context="entry")
        assert isinstance(excinfo.value.__cause__, requests.Timeout)

    @patch("common.http_client.requests.get", side_effect=requests.ConnectionError("refused"))
    def test_connection_error_raises(self, _mock_get):
        with pytest.raises(HttpClientError):
            safe_get("https://example.com/a.js", context="entry")


class TestLoggingUtils:
    """Tests for logging helpers."""

    def test_extra_context_drops_none(self):
        assert extra_context(event="x", target=None, status_code=200) == {
            "event": "x",
            "status_code": 200,
        }

    def test_safe_url_redacts_credentials(self):
        url = "https://user:pw@cdn.example.com/multi?token=abc&debug=1"
        assert safe_url(url) == "https://[REDACTED]@cdn.example.com/multi?token=[REDACTED]&debug=1"

    def test_safe_url_leaves_plain_url(self):
        assert safe_url("https://cdn.example.com/multi") == "https://cdn.example.com/multi"

    def test_redact_masks_key_value_pairs(self):
        assert redact("failed with api_key=secret123") == "failed with api_key=[REDACTED]"
        assert redact(None) == ""

    def test_configure_logging_is_idempotent(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
        root = logging.getLogger()
        previous_level = root.level
        try:
            configure_logging()
            configure_logging()
            marked = [h for h in root.handlers if getattr(h, "_modsandbox_handler", False)]
            assert len(marked) == 1
            assert is_debug_enabled(logging.getLogger("modsandbox.test"))
            configure_logging("warning")
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous_level)

    def test_timer_measures_duration(self):
        with Timer() as t:
            pass
        assert t.duration_ms() >= 0
