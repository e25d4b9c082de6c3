"""API endpoints for prompt generation.

Provides:
  - POST /generate: idea → meta-prompt → provider → structured prompt
  - POST /preflight: check a local/custom endpoint before generating
  - GET /providers: provider profile table
  - GET /prompt-options: subject types and model classes
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from quickprompt.core.rate_limit import generate_limit, limiter
from quickprompt.gateway.gateway import PromptGateway
from quickprompt.gateway.types import CanonicalRequest, ClassifiedError, ErrorKind
from quickprompt.prompt_engine.builder import build_meta_prompt, get_model_types, get_subject_types
from quickprompt.schemas.generate import (
    GenerateRequest,
    PreflightRequest,
    PreflightResponse,
    PromptResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.AUTH: 401,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONTENT_FILTERED: 422,
    ErrorKind.CONTEXT_TOO_LONG: 413,
    ErrorKind.NETWORK: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
    ErrorKind.UNKNOWN: 502,
}


def get_gateway(request: Request) -> PromptGateway:
    return request.app.state.gateway


def error_response(error: ClassifiedError) -> JSONResponse:
    return JSONResponse(status_code=ERROR_STATUS.get(error.kind, 502), content={"error": error.to_dict()})


@router.post("/generate", response_model=PromptResult)
@limiter.limit(generate_limit)
async def generate_prompt(
    request: Request,
    body: GenerateRequest,
    gateway: PromptGateway = Depends(get_gateway),
):
    """Generate a structured prompt from an idea.

    One provider call per request; classified failures come back as
    ``{"error": {...}}`` with a status matching the error kind.
    """
    meta = build_meta_prompt(body.subject_type, body.idea, body.model_type)
    canonical = CanonicalRequest(
        system_instruction=meta.system,
        user_instruction=meta.user,
        provider_id=body.provider,
        credentials=(body.api_key or "").strip() or None,
        model_name=body.model,
        provider_overrides=body.provider_overrides(),
    )

    try:
        result = await gateway.generate(canonical)
    except ClassifiedError as e:
        return error_response(e)
    return result.to_dict()


@router.post("/preflight", response_model=PreflightResponse)
async def preflight(
    body: PreflightRequest,
    gateway: PromptGateway = Depends(get_gateway),
):
    """Check that a local/custom endpoint is reachable and has the model."""
    result = await gateway.preflight(body.provider, body.overrides())
    return result.to_dict()


@router.get("/providers")
async def list_providers(gateway: PromptGateway = Depends(get_gateway)):
    return [profile.to_dict() for profile in gateway.profiles.values()]


@router.get("/prompt-options")
async def prompt_options():
    return {"subject_types": get_subject_types(), "model_types": get_model_types()}
