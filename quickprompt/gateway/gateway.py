"""Provider Gateway: entry point for turning a CanonicalRequest into a result.

  1. Resolve the provider profile, base URL and model name
  2. Check the credentials precondition
  3. Dispatch exactly one call via the wire adapter for the profile
  4. Normalize the reply text into a CanonicalResult

Failures surface as ClassifiedError; nothing is retried and no state is
kept between calls.

Usage:
    gateway = PromptGateway()
    result = await gateway.generate(
        CanonicalRequest(system_instruction=..., user_instruction=..., provider_id=ProviderId.OPENAI, credentials="sk-...")
    )
"""

from __future__ import annotations

import logging
import time
from typing import Mapping

from quickprompt.core.config import settings
from quickprompt.core.metrics import GATEWAY_CALL_DURATION, GATEWAY_CALLS, NORMALIZER_STRATEGY
from quickprompt.gateway.adapters import BaseWireAdapter, ChatBridge, get_adapter
from quickprompt.gateway.normalizer import normalize_with_strategy
from quickprompt.gateway.preflight import run_preflight
from quickprompt.gateway.types import (
    PROVIDER_PROFILES,
    CanonicalRequest,
    CanonicalResult,
    ClassifiedError,
    ErrorKind,
    PreflightResult,
    ProviderId,
    ProviderProfile,
)

logger = logging.getLogger(__name__)


class PromptGateway:
    """Stateless dispatcher over a read-only provider table."""

    def __init__(
        self,
        profiles: Mapping[ProviderId, ProviderProfile] | None = None,
        chat_bridge: ChatBridge | None = None,
        timeout: float | None = None,
        preflight_timeout: float | None = None,
    ):
        """
        Args:
            profiles: Provider table; defaults to PROVIDER_PROFILES
            chat_bridge: Host chat function for sdk-call providers
            timeout: Transport timeout per provider call (seconds)
            preflight_timeout: Timeout for preflight checks (seconds)
        """
        self.profiles = profiles if profiles is not None else PROVIDER_PROFILES
        self.chat_bridge = chat_bridge
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.preflight_timeout = (
            preflight_timeout if preflight_timeout is not None else settings.preflight_timeout_seconds
        )

    # -- resolution -----------------------------------------------------

    def get_profile(self, provider_id: ProviderId | str) -> ProviderProfile:
        try:
            return self.profiles[ProviderId(provider_id)]
        except (KeyError, ValueError):
            raise ClassifiedError(
                ErrorKind.NOT_FOUND,
                f"Unknown provider: {provider_id}. Pick one of: {', '.join(p.value for p in self.profiles)}",
            ) from None

    @staticmethod
    def resolve_base_url(profile: ProviderProfile, overrides: Mapping[str, str]) -> str | None:
        """Explicit override > local endpoint override > provider default."""
        url = overrides.get("base_url") or ""
        if not url and profile.id == ProviderId.OLLAMA:
            url = overrides.get("local_url") or ""
        url = url.strip() or profile.default_base_url or ""
        return url.rstrip("/") or None

    @staticmethod
    def resolve_model(profile: ProviderProfile, model_name: str | None) -> str:
        return (model_name or "").strip() or profile.default_model_name

    def _adapter_for(self, profile: ProviderProfile) -> BaseWireAdapter:
        return get_adapter(
            profile,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            timeout=self.timeout,
            anthropic_version=settings.anthropic_version,
            chat_bridge=self.chat_bridge,
        )

    # -- operations -----------------------------------------------------

    async def fetch_raw(self, request: CanonicalRequest) -> str:
        """Perform one provider call and return the unwrapped reply text.

        Raises:
            ClassifiedError: for every failure, including empty replies.
        """
        profile = self.get_profile(request.provider_id)

        if profile.requires_credentials and not (request.credentials or "").strip():
            raise ClassifiedError(
                ErrorKind.AUTH,
                f"No API key configured for {profile.display_label}. Please enter your API key in the settings.",
            )

        base_url = self.resolve_base_url(profile, request.provider_overrides)
        model = self.resolve_model(profile, request.model_name)
        adapter = self._adapter_for(profile)

        logger.info(
            "Dispatching to %s (model=%s, format=%s)",
            profile.id.value,
            model,
            profile.wire_format.value,
            extra={"provider": profile.id.value},
        )
        start = time.monotonic()
        try:
            text = await adapter.fetch_text(request, base_url, model)
        except ClassifiedError as e:
            GATEWAY_CALLS.labels(provider=profile.id.value, outcome=e.kind.value).inc()
            logger.warning(
                "%s call failed: %s (%s)",
                profile.id.value,
                e.kind.value,
                e.message,
                extra={"provider": profile.id.value, "outcome": e.kind.value},
            )
            raise
        finally:
            GATEWAY_CALL_DURATION.labels(provider=profile.id.value).observe(time.monotonic() - start)

        GATEWAY_CALLS.labels(provider=profile.id.value, outcome="success").inc()
        return text

    async def generate(self, request: CanonicalRequest) -> CanonicalResult:
        """One provider call, then normalization.

        Raises:
            ClassifiedError: if the provider call fails. Normalization
                itself never fails.
        """
        raw = await self.fetch_raw(request)
        result, strategy = normalize_with_strategy(raw)
        NORMALIZER_STRATEGY.labels(strategy=strategy).inc()
        logger.debug("Normalized %d chars via %s strategy", len(raw), strategy)
        return result

    async def preflight(
        self,
        provider_id: ProviderId | str,
        overrides: Mapping[str, str] | None = None,
    ) -> PreflightResult:
        """Check a local/custom endpoint before generating. Never generates."""
        try:
            profile = self.get_profile(provider_id)
        except ClassifiedError as e:
            return PreflightResult(ok=False, error=e.message)

        overrides = overrides or {}
        return await run_preflight(
            profile,
            base_url=self.resolve_base_url(profile, overrides),
            model=self.resolve_model(profile, overrides.get("model")),
            timeout=self.preflight_timeout,
        )
