"""Preflight checks for providers reached through a user-supplied endpoint.

  - Ollama: server reachable and the requested model installed
    (GET /api/tags); suggests a same-family model when one is present
  - Custom endpoint: server reachable (GET {base}/models)

Preflight never performs the generation call.
"""

from __future__ import annotations

import logging
import re

import httpx

from quickprompt.gateway.types import PreflightResult, ProviderId, ProviderProfile

logger = logging.getLogger(__name__)

_FAMILY = re.compile(r"[a-zA-Z]+")


def ollama_root(base_url: str) -> str:
    """Native Ollama API root for an OpenAI-compatible base URL."""
    root = base_url.rstrip("/")
    if root.endswith("/v1"):
        root = root[: -len("/v1")]
    return root


def _strip_latest(name: str) -> str:
    return name[: -len(":latest")] if name.endswith(":latest") else name


def model_family(name: str) -> str:
    """Leading alphabetic run of the base name: "llama3.1:8b" → "llama"."""
    base = name.split(":", 1)[0].rsplit("/", 1)[-1]
    m = _FAMILY.match(base)
    return m.group(0).lower() if m else base.lower()


def find_installed(requested: str, installed: list[str]) -> str | None:
    """Return the installed name matching ``requested``, ignoring ``:latest``."""
    wanted = _strip_latest(requested)
    for name in installed:
        if _strip_latest(name) == wanted:
            return name
    return None


def suggest_same_family(requested: str, installed: list[str]) -> str | None:
    family = model_family(requested)
    for name in installed:
        if model_family(name) == family:
            return name
    return None


async def check_ollama(base_url: str, model: str, timeout: float = 5.0) -> PreflightResult:
    root = ollama_root(base_url)
    url = f"{root}/api/tags"
    diagnostic: dict = {"endpoint": root, "model": model}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
    except (httpx.TransportError, httpx.InvalidURL) as e:
        logger.info("Ollama preflight: %s unreachable (%s)", root, e)
        diagnostic["reason"] = str(e) or type(e).__name__
        return PreflightResult(
            ok=False,
            error=(
                f"Cannot reach Ollama at {root}. Make sure it is running (`ollama serve`) "
                "and that OLLAMA_ORIGINS allows requests from this app."
            ),
            diagnostic_info=diagnostic,
        )

    if not resp.is_success:
        diagnostic["status_code"] = resp.status_code
        return PreflightResult(
            ok=False,
            error=f"Ollama at {root} answered HTTP {resp.status_code} for {url}. Is this an Ollama server?",
            diagnostic_info=diagnostic,
        )

    try:
        data = resp.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    models = data.get("models")
    if not isinstance(models, list):
        models = []
    installed = [m["name"] for m in models if isinstance(m, dict) and isinstance(m.get("name"), str) and m["name"]]
    diagnostic["installed_models"] = installed

    match = find_installed(model, installed)
    if match is not None:
        diagnostic["resolved_model"] = match
        return PreflightResult(ok=True, diagnostic_info=diagnostic)

    error = f"Model '{model}' is not installed in Ollama. Run `ollama pull {model}` to download it."
    suggestion = suggest_same_family(model, installed)
    if suggestion:
        diagnostic["suggested_model"] = suggestion
        error += f" Or use '{suggestion}', which is already installed."
    elif installed:
        error += f" Installed models: {', '.join(installed)}."

    return PreflightResult(ok=False, error=error, diagnostic_info=diagnostic)


async def check_custom_endpoint(base_url: str, timeout: float = 5.0) -> PreflightResult:
    url = f"{base_url.rstrip('/')}/models"
    diagnostic: dict = {"endpoint": base_url}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
    except (httpx.TransportError, httpx.InvalidURL) as e:
        logger.info("Custom endpoint preflight: %s unreachable (%s)", base_url, e)
        diagnostic["reason"] = str(e) or type(e).__name__
        return PreflightResult(
            ok=False,
            error=(
                f"Cannot reach {base_url}. Check that the server is running, the URL is correct "
                "and that it allows cross-origin requests."
            ),
            diagnostic_info=diagnostic,
        )

    # Any HTTP answer means the server is up
    diagnostic["status_code"] = resp.status_code
    if resp.is_success:
        try:
            data = resp.json()
        except ValueError:
            data = None
        entries = data.get("data") if isinstance(data, dict) else None
        if isinstance(entries, list):
            diagnostic["models"] = [m.get("id") for m in entries if isinstance(m, dict)]
    return PreflightResult(ok=True, diagnostic_info=diagnostic)


async def run_preflight(
    profile: ProviderProfile,
    base_url: str | None,
    model: str,
    timeout: float = 5.0,
) -> PreflightResult:
    """Dispatch the check appropriate for ``profile``."""
    if not profile.supports_preflight:
        return PreflightResult(ok=True, diagnostic_info={"skipped": True, "provider": profile.id.value})

    if not base_url:
        return PreflightResult(
            ok=False,
            error=f"{profile.display_label} needs an endpoint URL. Enter it in the settings.",
            diagnostic_info={"provider": profile.id.value},
        )

    if profile.id == ProviderId.OLLAMA:
        return await check_ollama(base_url, model, timeout=timeout)
    return await check_custom_endpoint(base_url, timeout=timeout)
