"""Wire-format adapters: one per request/response shape.

Each adapter translates a CanonicalRequest into its wire call, performs
it once, and returns the reply text found at the format's envelope path.

Wire formats:
  - chat-completions: OpenAI-style, also DeepSeek, Ollama, custom servers
  - responses: OpenAI Responses API, output_text
  - messages: Anthropic, x-api-key header, content[type=text]
  - generate-content: Gemini, key in URL, SAFETY / blockReason → content-filtered
  - sdk-call: host-injected chat bridge, no HTTP at all
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from quickprompt.gateway.errors import classify_bridge_error, no_content_error
from quickprompt.gateway.transport import post_json
from quickprompt.gateway.types import (
    AuthScheme,
    CanonicalRequest,
    ClassifiedError,
    ErrorKind,
    ProviderProfile,
    WireFormat,
)

logger = logging.getLogger(__name__)

JSON_OBJECT_FORMAT = {"type": "json_object"}

# Host-provided chat function: awaited with a role-tagged message list.
ChatBridge = Callable[..., Awaitable[Any]]


class BaseWireAdapter(ABC):
    """Base class for all wire adapters."""

    wire_format: WireFormat

    def __init__(
        self,
        profile: ProviderProfile,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
        timeout: float = 120.0,
        **kwargs,
    ):
        self.profile = profile
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

    @abstractmethod
    async def fetch_text(self, request: CanonicalRequest, base_url: str | None, model: str) -> str:
        """Perform exactly one call and return the unwrapped reply text."""
        ...


class HttpWireAdapter(BaseWireAdapter):
    """Adapters that POST JSON to an HTTP endpoint."""

    @abstractmethod
    def build_url(self, base_url: str, model: str, credentials: str | None) -> str: ...

    @abstractmethod
    def build_body(self, request: CanonicalRequest, model: str) -> dict[str, Any]: ...

    @abstractmethod
    def extract_text(self, data: Any) -> str | None:
        """Locate the reply text in the response envelope."""
        ...

    def build_headers(self, credentials: str | None) -> dict[str, str]:
        scheme = self.profile.auth_scheme
        if scheme == AuthScheme.BEARER and credentials:
            return {"Authorization": f"Bearer {credentials}"}
        if scheme == AuthScheme.API_KEY_HEADER and credentials:
            return {"x-api-key": credentials}
        return {}

    async def fetch_text(self, request: CanonicalRequest, base_url: str | None, model: str) -> str:
        if not base_url:
            raise ClassifiedError(
                ErrorKind.NOT_FOUND,
                f"{self.profile.display_label} needs a base URL. Enter the endpoint URL in the settings.",
            )

        url = self.build_url(base_url, model, request.credentials)
        data = await post_json(
            url,
            self.build_body(request, model),
            self.build_headers(request.credentials),
            self.profile.display_label,
            timeout=self.timeout,
        )

        text = self.extract_text(data)
        if not isinstance(text, str) or not text.strip():
            raise no_content_error(self.profile.display_label, data)
        return text


# ---------------------------------------------------------------------------
# Chat Completions (OpenAI and compatible)
# ---------------------------------------------------------------------------


class ChatCompletionsAdapter(HttpWireAdapter):
    """OpenAI Chat Completions and OpenAI-compatible servers."""

    wire_format = WireFormat.CHAT_COMPLETIONS

    def build_url(self, base_url: str, model: str, credentials: str | None) -> str:
        return f"{base_url}/chat/completions"

    def build_body(self, request: CanonicalRequest, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_instruction},
            ],
            "temperature": self.temperature,
            self.profile.max_tokens_param: self.max_output_tokens,
            "response_format": JSON_OBJECT_FORMAT,
        }

    def extract_text(self, data: Any) -> str | None:
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None


# ---------------------------------------------------------------------------
# Responses API (OpenAI)
# ---------------------------------------------------------------------------


class ResponsesAdapter(HttpWireAdapter):
    """OpenAI Responses API."""

    wire_format = WireFormat.RESPONSES

    def build_url(self, base_url: str, model: str, credentials: str | None) -> str:
        return f"{base_url}/responses"

    def build_body(self, request: CanonicalRequest, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "instructions": request.system_instruction,
            "input": request.user_instruction,
            "text": {"format": JSON_OBJECT_FORMAT},
        }

    def extract_text(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        if data.get("output_text"):
            return data["output_text"]

        # Raw envelope: output[] → message → content[] → output_text
        output = data.get("output")
        for item in output if isinstance(output, list) else []:
            if not isinstance(item, dict):
                continue
            parts = item.get("content")
            for part in parts if isinstance(parts, list) else []:
                if isinstance(part, dict) and part.get("type") in ("output_text", "text") and part.get("text"):
                    return part["text"]
        return None


# ---------------------------------------------------------------------------
# Messages API (Anthropic)
# ---------------------------------------------------------------------------


class MessagesAdapter(HttpWireAdapter):
    """Anthropic Messages API with vendor API-key header."""

    wire_format = WireFormat.MESSAGES

    def __init__(self, profile: ProviderProfile, anthropic_version: str = "2023-06-01", **kwargs):
        super().__init__(profile, **kwargs)
        self.anthropic_version = anthropic_version

    def build_url(self, base_url: str, model: str, credentials: str | None) -> str:
        return f"{base_url}/messages"

    def build_headers(self, credentials: str | None) -> dict[str, str]:
        headers = super().build_headers(credentials)
        headers["anthropic-version"] = self.anthropic_version
        return headers

    def build_body(self, request: CanonicalRequest, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": self.max_output_tokens,
            "system": request.system_instruction,
            "messages": [{"role": "user", "content": request.user_instruction}],
        }

    def extract_text(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        blocks = data.get("content")
        for block in blocks if isinstance(blocks, list) else []:
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text")
        return None


# ---------------------------------------------------------------------------
# generateContent (Google Gemini)
# ---------------------------------------------------------------------------


class GenerateContentAdapter(HttpWireAdapter):
    """Google Gemini generateContent with SAFETY filter detection."""

    wire_format = WireFormat.GENERATE_CONTENT

    def build_url(self, base_url: str, model: str, credentials: str | None) -> str:
        url = f"{base_url}/models/{model}:generateContent"
        if credentials:
            url += f"?key={quote(credentials, safe='')}"
        return url

    def build_headers(self, credentials: str | None) -> dict[str, str]:
        # Key travels in the URL
        return {}

    def build_body(self, request: CanonicalRequest, model: str) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": request.user_instruction}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
                "responseMimeType": "application/json",
            },
        }

    def extract_text(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if block_reason:
                raise ClassifiedError(
                    ErrorKind.CONTENT_FILTERED,
                    f"Gemini blocked the prompt ({block_reason}). Try rephrasing sensitive content.",
                    detail=str(block_reason),
                )
            return None

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            return None
        if candidate.get("finishReason") == "SAFETY":
            raise ClassifiedError(
                ErrorKind.CONTENT_FILTERED,
                "Gemini safety filter triggered. Try rephrasing sensitive content or using a different model.",
                detail="SAFETY",
            )

        try:
            return candidate["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None


# ---------------------------------------------------------------------------
# SDK call (in-browser AI bridge)
# ---------------------------------------------------------------------------


class SdkCallAdapter(BaseWireAdapter):
    """Host-injected chat bridge. No HTTP boundary."""

    wire_format = WireFormat.SDK_CALL

    def __init__(self, profile: ProviderProfile, chat_bridge: ChatBridge | None = None, **kwargs):
        super().__init__(profile, **kwargs)
        self.chat_bridge = chat_bridge

    async def fetch_text(self, request: CanonicalRequest, base_url: str | None, model: str) -> str:
        if self.chat_bridge is None:
            raise ClassifiedError(
                ErrorKind.SERVICE_UNAVAILABLE,
                f"{self.profile.display_label} SDK not loaded. The host chat bridge is missing; "
                "make sure the page includes the SDK script, or pick another provider.",
                recoverable_by_fallback_provider=True,
            )

        messages = [
            {"role": "system", "content": request.system_instruction},
            {"role": "user", "content": request.user_instruction},
        ]
        try:
            response = await self.chat_bridge(messages, model=model)
        except Exception as e:
            logger.warning("Chat bridge call failed (%s): %s", model, e)
            raise classify_bridge_error(e) from e

        text = self.extract_text(response)
        if not text or not text.strip():
            raise no_content_error(self.profile.display_label, response)
        return text

    @staticmethod
    def extract_text(response: Any) -> str | None:
        if isinstance(response, str):
            return response

        message = response.get("message") if isinstance(response, dict) else getattr(response, "message", None)
        if message is None:
            return None
        content = message.get("content") if isinstance(message, dict) else getattr(message, "content", None)

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = [p["text"] for p in content if isinstance(p, dict) and isinstance(p.get("text"), str)]
            return "".join(texts) or None
        return None


# ---------------------------------------------------------------------------
# Adapter registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[WireFormat, type[BaseWireAdapter]] = {
    WireFormat.CHAT_COMPLETIONS: ChatCompletionsAdapter,
    WireFormat.RESPONSES: ResponsesAdapter,
    WireFormat.MESSAGES: MessagesAdapter,
    WireFormat.GENERATE_CONTENT: GenerateContentAdapter,
    WireFormat.SDK_CALL: SdkCallAdapter,
}


def get_adapter(profile: ProviderProfile, **kwargs) -> BaseWireAdapter:
    """Factory: get the adapter for a profile's wire format."""
    cls = ADAPTER_REGISTRY.get(profile.wire_format)
    if cls is None:
        raise ValueError(f"No adapter registered for wire format: {profile.wire_format}")
    return cls(profile, **kwargs)
