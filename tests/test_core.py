"""Tests for ambient infrastructure: log redaction, Sentry scrubbing, settings checks."""

from __future__ import annotations

import json
import logging

import pytest

from quickprompt.core import config
from quickprompt.core.logging import JSONFormatter, SecretRedactingFilter, redact_secrets
from quickprompt.core.rate_limit import generate_limit
from quickprompt.core.sentry import FILTERED, scrub_event


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("quickprompt.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRedaction:
    @pytest.mark.parametrize(
        "text,secret",
        [
            ("headers={'Authorization': 'Bearer sk-live-123'}", "sk-live-123"),
            ("POST https://x/models/m:generateContent?key=AIzaSECRET&alt=json", "AIzaSECRET"),
            ("{'x-api-key': 'ak-999', 'anthropic-version': '2023-06-01'}", "ak-999"),
        ],
    )
    def test_masks_credentials(self, text, secret):
        redacted = redact_secrets(text)
        assert secret not in redacted
        assert "***" in redacted

    def test_plain_text_untouched(self):
        assert redact_secrets("Dispatching to openai (model=gpt-4o)") == "Dispatching to openai (model=gpt-4o)"

    def test_filter_rewrites_rendered_message(self):
        record = _record("Calling %s", "https://x?key=SECRET")
        assert SecretRedactingFilter().filter(record) is True
        assert record.getMessage() == "Calling https://x?key=***"

    def test_filter_keeps_args_when_clean(self):
        record = _record("Calling %s", "openai")
        SecretRedactingFilter().filter(record)
        assert record.args == ("openai",)


class TestJSONFormatter:
    def test_provider_extra(self):
        record = _record("call failed", provider="gemini", outcome="rate-limit")
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "call failed"
        assert data["provider"] == "gemini"
        assert data["outcome"] == "rate-limit"
        assert data["level"] == "INFO"

    def test_without_extra(self):
        data = json.loads(JSONFormatter().format(_record("hello")))
        assert "provider" not in data


class TestSentryScrub:
    def test_scrubs_headers_body_and_query(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer sk-1", "X-Api-Key": "ak-1", "Accept": "*/*"},
                "data": {"idea": "x", "api_key": "sk-1"},
                "query_string": "key=AIza",
            }
        }
        scrubbed = scrub_event(event, {})
        request = scrubbed["request"]
        assert request["headers"]["Authorization"] == FILTERED
        assert request["headers"]["X-Api-Key"] == FILTERED
        assert request["headers"]["Accept"] == "*/*"
        assert request["data"] == {"idea": "x", "api_key": FILTERED}
        assert request["query_string"] == FILTERED

    def test_event_without_request(self):
        assert scrub_event({"message": "boom"}, {}) == {"message": "boom"}


class TestRateLimit:
    def test_generate_limit_follows_settings(self, monkeypatch):
        monkeypatch.setattr(config.settings, "generate_rate_limit", "5/second")
        assert generate_limit() == "5/second"


class TestProductionSettings:
    def test_rejects_wildcard_cors_and_debug(self, monkeypatch):
        monkeypatch.setattr(config.settings, "app_env", "production")
        monkeypatch.setattr(config.settings, "allowed_origins", "*")
        monkeypatch.setattr(config.settings, "app_debug", True)

        with pytest.raises(SystemExit) as exc_info:
            config.validate_settings_for_production()

        assert "ALLOWED_ORIGINS" in str(exc_info.value)
        assert "APP_DEBUG" in str(exc_info.value)

    def test_accepts_locked_down_production(self, monkeypatch):
        monkeypatch.setattr(config.settings, "app_env", "production")
        monkeypatch.setattr(config.settings, "allowed_origins", "https://quickprompt.example.com")
        monkeypatch.setattr(config.settings, "app_debug", False)

        config.validate_settings_for_production()

    def test_rejects_non_positive_timeout(self, monkeypatch):
        monkeypatch.setattr(config.settings, "provider_timeout_seconds", 0)

        with pytest.raises(SystemExit):
            config.validate_settings_for_production()
