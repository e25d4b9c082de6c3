"""Core types and DTOs for the provider gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProviderId(str, Enum):
    """Supported providers."""

    OPENAI = "openai"
    OPENAI_RESPONSES = "openai-responses"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"
    CUSTOM = "custom"
    PUTER = "puter"


class WireFormat(str, Enum):
    """Request/response shape a provider speaks."""

    CHAT_COMPLETIONS = "chat-completions"
    RESPONSES = "responses"
    MESSAGES = "messages"
    GENERATE_CONTENT = "generate-content"
    SDK_CALL = "sdk-call"


class AuthScheme(str, Enum):
    """How credentials travel with a request. One scheme per call."""

    BEARER = "bearer"
    API_KEY_HEADER = "api-key-header"
    URL_KEY = "url-key"
    NONE = "none"


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers."""

    AUTH = "auth"
    RATE_LIMIT = "rate-limit"
    NOT_FOUND = "not-found"
    CONTENT_FILTERED = "content-filtered"
    CONTEXT_TOO_LONG = "context-too-long"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVICE_UNAVAILABLE = "service-unavailable"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Provider profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderProfile:
    """Static connection metadata for one provider."""

    id: ProviderId
    display_label: str
    default_model_name: str
    wire_format: WireFormat
    auth_scheme: AuthScheme
    default_base_url: str | None = None
    requires_credentials: bool = True
    max_tokens_param: str = "max_completion_tokens"  # chat-completions only
    supports_preflight: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id.value,
            "display_label": self.display_label,
            "default_base_url": self.default_base_url,
            "default_model_name": self.default_model_name,
            "wire_format": self.wire_format.value,
            "auth_scheme": self.auth_scheme.value,
            "requires_credentials": self.requires_credentials,
            "supports_preflight": self.supports_preflight,
        }


PROVIDER_PROFILES: Mapping[ProviderId, ProviderProfile] = MappingProxyType(
    {
        ProviderId.OPENAI: ProviderProfile(
            id=ProviderId.OPENAI,
            display_label="OpenAI (Chat Completions)",
            default_base_url="https://api.openai.com/v1",
            default_model_name="gpt-4o",
            wire_format=WireFormat.CHAT_COMPLETIONS,
            auth_scheme=AuthScheme.BEARER,
        ),
        ProviderId.OPENAI_RESPONSES: ProviderProfile(
            id=ProviderId.OPENAI_RESPONSES,
            display_label="OpenAI (Responses API)",
            default_base_url="https://api.openai.com/v1",
            default_model_name="gpt-4o",
            wire_format=WireFormat.RESPONSES,
            auth_scheme=AuthScheme.BEARER,
        ),
        ProviderId.ANTHROPIC: ProviderProfile(
            id=ProviderId.ANTHROPIC,
            display_label="Anthropic Claude",
            default_base_url="https://api.anthropic.com/v1",
            default_model_name="claude-sonnet-4-20250514",
            wire_format=WireFormat.MESSAGES,
            auth_scheme=AuthScheme.API_KEY_HEADER,
        ),
        ProviderId.GEMINI: ProviderProfile(
            id=ProviderId.GEMINI,
            display_label="Google Gemini",
            default_base_url="https://generativelanguage.googleapis.com/v1beta",
            default_model_name="gemini-2.0-flash",
            wire_format=WireFormat.GENERATE_CONTENT,
            auth_scheme=AuthScheme.URL_KEY,
        ),
        ProviderId.DEEPSEEK: ProviderProfile(
            id=ProviderId.DEEPSEEK,
            display_label="DeepSeek",
            default_base_url="https://api.deepseek.com",
            default_model_name="deepseek-chat",
            wire_format=WireFormat.CHAT_COMPLETIONS,
            auth_scheme=AuthScheme.BEARER,
            max_tokens_param="max_tokens",
        ),
        ProviderId.OLLAMA: ProviderProfile(
            id=ProviderId.OLLAMA,
            display_label="Ollama (local)",
            default_base_url="http://localhost:11434/v1",
            default_model_name="llama3.1",
            wire_format=WireFormat.CHAT_COMPLETIONS,
            auth_scheme=AuthScheme.NONE,
            requires_credentials=False,
            max_tokens_param="max_tokens",
            supports_preflight=True,
        ),
        ProviderId.CUSTOM: ProviderProfile(
            id=ProviderId.CUSTOM,
            display_label="Custom OpenAI-compatible endpoint",
            default_base_url=None,
            default_model_name="local-model",
            wire_format=WireFormat.CHAT_COMPLETIONS,
            auth_scheme=AuthScheme.BEARER,
            requires_credentials=False,
            max_tokens_param="max_tokens",
            supports_preflight=True,
        ),
        ProviderId.PUTER: ProviderProfile(
            id=ProviderId.PUTER,
            display_label="Puter GPT-OSS (free, in-browser)",
            default_base_url=None,
            default_model_name="openai/gpt-oss-120b",
            wire_format=WireFormat.SDK_CALL,
            auth_scheme=AuthScheme.NONE,
            requires_credentials=False,
        ),
    }
)


# ---------------------------------------------------------------------------
# Canonical request / result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CanonicalRequest:
    """A single generation call, provider-agnostic. Immutable per call."""

    system_instruction: str
    user_instruction: str
    provider_id: ProviderId = ProviderId.OPENAI
    credentials: str | None = None
    model_name: str | None = None
    # e.g. {"base_url": "...", "local_url": "..."}
    provider_overrides: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if not isinstance(self.provider_overrides, MappingProxyType):
            object.__setattr__(self, "provider_overrides", MappingProxyType(dict(self.provider_overrides)))


@dataclass
class CanonicalResult:
    """Structured prompt produced from a provider reply.

    All five fields are always present and typed, whichever parse
    strategy produced them.
    """

    prompt_plain: str = ""
    prompt_structured: str = ""
    prompt_json: dict[str, Any] = field(default_factory=dict)
    optimization_notes: str = ""
    token_estimate: int = 0

    def to_dict(self) -> dict:
        return {
            "prompt_plain": self.prompt_plain,
            "prompt_structured": self.prompt_structured,
            "prompt_json": self.prompt_json,
            "optimization_notes": self.optimization_notes,
            "token_estimate": self.token_estimate,
        }


@dataclass
class PreflightResult:
    """Outcome of an endpoint/model availability check."""

    ok: bool
    error: str | None = None
    diagnostic_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"ok": self.ok, "error": self.error, "diagnostic_info": self.diagnostic_info}


# ---------------------------------------------------------------------------
# Classified error
# ---------------------------------------------------------------------------


class ClassifiedError(Exception):
    """A terminal, human-actionable failure of a single gateway call.

    ``recoverable_by_fallback_provider`` tells the caller that offering
    another provider (typically a local one) is a reasonable next step.
    The gateway never switches providers itself.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        recoverable_by_fallback_provider: bool = False,
        status_code: int = 0,
        detail: str = "",
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.recoverable_by_fallback_provider = recoverable_by_fallback_provider
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "recoverable_by_fallback_provider": self.recoverable_by_fallback_provider,
            "status_code": self.status_code,
            "detail": self.detail,
        }

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.value!r}, message={self.message!r})"
