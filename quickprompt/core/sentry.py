"""Sentry error tracking integration.

Initializes Sentry SDK if SENTRY_DSN env variable is set. Events are
scrubbed of provider credentials before they leave the process.
"""

import logging

from quickprompt.core.config import settings

logger = logging.getLogger(__name__)

FILTERED = "[Filtered]"
_SECRET_HEADERS = {"authorization", "x-api-key"}
_SECRET_FIELDS = {"api_key"}


def scrub_event(event: dict, hint: dict) -> dict:
    """``before_send`` hook: drop API keys from request headers and body."""
    request = event.get("request") or {}

    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in _SECRET_HEADERS:
                headers[name] = FILTERED

    data = request.get("data")
    if isinstance(data, dict):
        for name in data.keys() & _SECRET_FIELDS:
            if data[name]:
                data[name] = FILTERED

    query = request.get("query_string")
    if isinstance(query, str) and "key=" in query:
        request["query_string"] = FILTERED

    return event


def init_sentry() -> None:
    """Initialize Sentry if SENTRY_DSN is configured."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[FastApiIntegration(transaction_style="endpoint")],
    )
    logger.info("Sentry initialized (env=%s)", settings.app_env)
