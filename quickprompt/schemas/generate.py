"""Pydantic schemas for the generate/preflight API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from quickprompt.gateway.types import ProviderId
from quickprompt.prompt_engine.scaffolds import SUBJECT_SCAFFOLDS


class GenerateRequest(BaseModel):
    """Input for a single prompt generation."""

    idea: str = Field(min_length=1, max_length=10_000, description="The short idea to turn into a prompt")
    subject_type: str = Field("development", description="Subject scaffold, e.g. 'writing', 'data-analysis'")
    model_type: str = Field("llm", description="Target model class; unknown values fall back to 'llm'")
    provider: ProviderId = Field(ProviderId.OPENAI, description="Which provider to call")

    # Connection settings (never stored)
    api_key: str | None = Field(None, description="Provider API key")
    model: str | None = Field(None, description="Model name override")
    base_url: str | None = Field(None, description="Custom base URL")
    local_url: str | None = Field(None, description="Local model server URL")

    @field_validator("idea")
    @classmethod
    def _idea_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a prompt idea.")
        return v

    @field_validator("subject_type")
    @classmethod
    def _known_subject(cls, v: str) -> str:
        if v not in SUBJECT_SCAFFOLDS:
            raise ValueError(f"subject_type must be one of: {', '.join(SUBJECT_SCAFFOLDS)}")
        return v

    def provider_overrides(self) -> dict[str, str]:
        overrides = {}
        if self.base_url and self.base_url.strip():
            overrides["base_url"] = self.base_url.strip()
        if self.local_url and self.local_url.strip():
            overrides["local_url"] = self.local_url.strip()
        return overrides


class PromptResult(BaseModel):
    """Canonical structured prompt."""

    prompt_plain: str
    prompt_structured: str
    prompt_json: dict[str, Any]
    optimization_notes: str
    token_estimate: int = Field(ge=0)


class PreflightRequest(BaseModel):
    provider: ProviderId
    base_url: str | None = None
    local_url: str | None = None
    model: str | None = None

    def overrides(self) -> dict[str, str]:
        return {
            key: value.strip()
            for key, value in (("base_url", self.base_url), ("local_url", self.local_url), ("model", self.model))
            if value and value.strip()
        }


class PreflightResponse(BaseModel):
    ok: bool
    error: str | None = None
    diagnostic_info: dict[str, Any] = Field(default_factory=dict)
