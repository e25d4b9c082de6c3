"""Shared HTTP transport for wire adapters.

A single POST per call, no retry. Failures come back as ClassifiedError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from quickprompt.gateway.errors import (
    classify_http_status,
    classify_invalid_url,
    classify_transport_error,
    no_content_error,
    redact_url,
    snippet,
)

logger = logging.getLogger(__name__)


async def post_json(
    url: str,
    body: dict[str, Any],
    headers: dict[str, str],
    provider_label: str,
    timeout: float = 120.0,
) -> Any:
    """POST ``body`` as JSON and return the decoded response envelope.

    Raises:
        ClassifiedError: on transport failure, non-2xx status or a body
            that is not JSON.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(
                url,
                json=body,
                headers={**headers, "Content-Type": "application/json"},
            )
    except httpx.TransportError as e:
        logger.warning("Transport failure calling %s (%s): %s", provider_label, redact_url(url), e)
        raise classify_transport_error(e, provider_label) from e
    except httpx.InvalidURL as e:
        logger.warning("Invalid URL for %s (%s): %s", provider_label, redact_url(url), e)
        raise classify_invalid_url(e, provider_label, url) from e

    if not resp.is_success:
        logger.warning("%s returned HTTP %d for %s", provider_label, resp.status_code, redact_url(url))
        raise classify_http_status(resp, provider_label, url)

    try:
        return resp.json()
    except ValueError as e:
        logger.warning("%s returned a non-JSON body: %s", provider_label, snippet(resp.text))
        raise no_content_error(provider_label, resp.text) from e
