"""Error classification for provider calls.

Turns transport failures, non-2xx HTTP responses, empty envelopes and
chat-bridge exceptions into ClassifiedError values with a message that
says what happened, the likely cause and what to try next. The vendor's
own message is kept in ``detail`` and appended to the message.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx

from quickprompt.gateway.types import ClassifiedError, ErrorKind

SNIPPET_LIMIT = 300

_KEY_PARAM = re.compile(r"([?&]key=)[^&]+")


def redact_url(url: str) -> str:
    """Hide an API key embedded in a query string."""
    return _KEY_PARAM.sub(r"\1***", url)


def snippet(payload: Any, limit: int = SNIPPET_LIMIT) -> str:
    """Bounded text rendering of an envelope for diagnostics."""
    if isinstance(payload, str):
        text = payload
    else:
        try:
            text = json.dumps(payload, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = repr(payload)
    return text[:limit]


def vendor_message(resp: httpx.Response) -> str:
    """Best-effort extraction of the provider-supplied error message."""
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])

    return resp.reason_phrase or resp.text[:SNIPPET_LIMIT]


# ---------------------------------------------------------------------------
# HTTP / transport
# ---------------------------------------------------------------------------


def classify_transport_error(exc: httpx.TransportError, provider_label: str) -> ClassifiedError:
    """Map a failure that happened before any HTTP status was received."""
    if isinstance(exc, httpx.TimeoutException):
        return ClassifiedError(
            ErrorKind.TIMEOUT,
            f"{provider_label} did not respond in time. The model may be overloaded; "
            "try again later or switch to a faster model or a local provider.",
            recoverable_by_fallback_provider=True,
            detail=str(exc),
        )

    detail = str(exc) or type(exc).__name__
    return ClassifiedError(
        ErrorKind.NETWORK,
        f"Network error while calling {provider_label}. This is likely a CORS issue: "
        "many providers block direct cross-origin requests from the browser. "
        "Try a CORS-friendly provider (such as Puter GPT-OSS), a local model server "
        f"such as Ollama, or a CORS-compatible proxy. ({detail})",
        recoverable_by_fallback_provider=True,
        detail=detail,
    )


def classify_invalid_url(exc: httpx.InvalidURL, provider_label: str, url: str) -> ClassifiedError:
    """The request URL could not be built, usually a mistyped base URL."""
    return ClassifiedError(
        ErrorKind.NOT_FOUND,
        f"Invalid base URL for {provider_label}: {redact_url(url)}. Check the endpoint URL in the settings.",
        detail=str(exc),
    )


def classify_http_status(resp: httpx.Response, provider_label: str, url: str = "") -> ClassifiedError:
    """Map a non-success HTTP response to an error kind."""
    status = resp.status_code
    message = vendor_message(resp)

    if status == 401:
        return ClassifiedError(
            ErrorKind.AUTH,
            f"Invalid API key for {provider_label}. Please check your key and try again. ({message})",
            status_code=status,
            detail=message,
        )
    if status == 429:
        return ClassifiedError(
            ErrorKind.RATE_LIMIT,
            f"Rate limit exceeded (429) at {provider_label}. This usually means: "
            "(1) your account has insufficient balance or credits, check billing; "
            "(2) you have hit your requests-per-minute limit, wait 60 seconds and retry; or "
            "(3) your account is on a free tier that restricts this model. "
            f"Consider switching to a free or local provider. ({message})",
            recoverable_by_fallback_provider=True,
            status_code=status,
            detail=message,
        )
    if status == 404:
        return ClassifiedError(
            ErrorKind.NOT_FOUND,
            f"Endpoint not found (404). Check your base URL, API mode and model name. Tried: {redact_url(url)}",
            status_code=status,
            detail=message,
        )
    return ClassifiedError(
        ErrorKind.UNKNOWN,
        f"API error ({status}) from {provider_label}: {message}",
        status_code=status,
        detail=message,
    )


def no_content_error(provider_label: str, envelope: Any) -> ClassifiedError:
    """The call succeeded but the envelope held no reply text."""
    raw = snippet(envelope) if envelope is not None else ""
    message = f"No content returned from {provider_label}. The model may have refused the request."
    if raw:
        message += f" Full response: {raw}"
    return ClassifiedError(ErrorKind.UNKNOWN, message, detail=raw)


# ---------------------------------------------------------------------------
# Chat bridge
# ---------------------------------------------------------------------------

# Checked in order; the first group with a matching keyword wins.
_BRIDGE_RULES: tuple[tuple[ErrorKind, tuple[str, ...], bool, str], ...] = (
    (
        ErrorKind.RATE_LIMIT,
        ("rate limit", "rate_limit", "ratelimit", "quota", "too many requests", "429", "usage limit", "insufficient"),
        True,
        "The free model is rate limited or out of quota right now. "
        "Wait a minute and retry, or switch to a local provider such as Ollama.",
    ),
    (
        ErrorKind.AUTH,
        ("unauthorized", "unauthenticated", "auth", "session", "401", "sign in", "login", "forbidden"),
        True,
        "The chat bridge session is not signed in or has expired. "
        "Reload the page and sign in again, or switch to a local provider.",
    ),
    (
        ErrorKind.CONTENT_FILTERED,
        ("content_filter", "content filter", "moderation", "flagged", "safety"),
        False,
        "Content was flagged by the model's safety filter. "
        "Try rephrasing sensitive content or using a different model.",
    ),
    (
        ErrorKind.CONTEXT_TOO_LONG,
        ("context_length", "context length", "too long", "maximum context", "token"),
        False,
        "Prompt is too long for this model. Try shortening your idea or switching to a larger model.",
    ),
    (
        ErrorKind.NOT_FOUND,
        ("not found", "not_found", "404", "invalid model", "unknown model", "model_not_found", "no such model"),
        False,
        "The requested model is not available through the chat bridge. Pick another model name.",
    ),
    (
        ErrorKind.SERVICE_UNAVAILABLE,
        ("unavailable", "overloaded", "503", "502", "capacity", "try again later"),
        True,
        "The chat bridge service is temporarily unavailable. "
        "Retry in a moment or switch to a local provider.",
    ),
    (
        ErrorKind.TIMEOUT,
        ("timeout", "timed out", "etimedout"),
        False,
        "The chat bridge call timed out. Try again or pick a faster model.",
    ),
)


def bridge_error_text(exc: BaseException) -> str:
    """Flatten a bridge exception and any payload it carries into one string."""
    parts = [str(exc) or type(exc).__name__]
    for attr in ("code", "error", "payload"):
        value = getattr(exc, attr, None)
        if value:
            parts.append(snippet(value))
    return " ".join(parts)


def classify_bridge_error(exc: BaseException) -> ClassifiedError:
    """Classify a chat-bridge failure by keyword signals in its payload."""
    text = bridge_error_text(exc)
    lowered = text.lower()

    for kind, keywords, recoverable, hint in _BRIDGE_RULES:
        if any(keyword in lowered for keyword in keywords):
            return ClassifiedError(kind, f"{hint} (Chat bridge error: {text})", recoverable, detail=text)

    return ClassifiedError(
        ErrorKind.UNKNOWN,
        f"Chat bridge error: {text}. Retry, or switch to a local provider if it keeps failing.",
        recoverable_by_fallback_provider=True,
        detail=text,
    )
