"""Tests for the HTTP API (ASGI client, mocked provider HTTP)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

REPLY = {
    "prompt_plain": "You are a senior Python engineer. Build a CLI that renames photos.",
    "prompt_structured": "## Role\nSenior Python engineer",
    "prompt_json": {"system": "You are a senior Python engineer."},
    "optimization_notes": "Added role and deliverables.",
    "token_estimate": 18,
}


def _make_httpx_response(status_code: int, json_data: dict | None = None, text: str = "") -> httpx.Response:
    request = httpx.Request("POST", "https://example.com")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, text=text, request=request)


def _wire_client(mock_client_cls, response=None, side_effect=None) -> AsyncMock:
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
        mock_client.get.side_effect = side_effect
    else:
        mock_client.post.return_value = response
        mock_client.get.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    mock_client_cls.return_value = mock_client
    return mock_client


def _openai_envelope(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestMeta:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_providers(self, client):
        resp = await client.get("/api/v1/providers")
        assert resp.status_code == 200
        providers = {p["id"]: p for p in resp.json()}
        assert len(providers) == 8
        assert providers["gemini"]["auth_scheme"] == "url-key"
        assert providers["custom"]["default_base_url"] is None

    @pytest.mark.asyncio
    async def test_prompt_options(self, client):
        resp = await client.get("/api/v1/prompt-options")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["subject_types"]) == 8
        assert len(data["model_types"]) == 5

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        await client.get("/api/v1/health")
        await client.get("/wp-login.php")
        resp = await client.get("/metrics")
        assert resp.status_code == 200
        assert "http_requests_total" in resp.text
        assert 'path="/api/v1/health"' in resp.text
        assert 'path="unmatched"' in resp.text
        assert "wp-login" not in resp.text


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            mock_client = _wire_client(
                mock_client_cls, _make_httpx_response(200, json_data=_openai_envelope(json.dumps(REPLY)))
            )
            resp = await client.post(
                "/api/v1/generate",
                json={"idea": "  Build a CLI that renames photos  ", "subject_type": "development", "api_key": "sk-test"},
            )

        assert resp.status_code == 200
        assert resp.json() == REPLY
        assert mock_client.post.call_count == 1

        sent = mock_client.post.call_args.kwargs["json"]
        assert sent["messages"][0]["role"] == "system"
        assert "**Base Idea:** Build a CLI that renames photos" in sent["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_prose_reply_still_succeeds(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, _make_httpx_response(200, json_data=_openai_envelope("Plain prompt text.")))
            resp = await client.post(
                "/api/v1/generate",
                json={"idea": "x", "provider": "ollama", "local_url": "http://gpu-box:11434/v1"},
            )

        assert resp.status_code == 200
        data = resp.json()
        assert data["prompt_plain"] == "Plain prompt text."
        assert data["prompt_json"] == {"prompt": "Plain prompt text."}

    @pytest.mark.asyncio
    async def test_missing_api_key(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            resp = await client.post("/api/v1/generate", json={"idea": "Build a CLI", "provider": "anthropic"})

        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "auth"
        mock_client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_rate_limit(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, _make_httpx_response(429, json_data={"error": {"message": "quota"}}))
            resp = await client.post("/api/v1/generate", json={"idea": "Build a CLI", "api_key": "sk-test"})

        assert resp.status_code == 429
        error = resp.json()["error"]
        assert error["kind"] == "rate-limit"
        assert error["recoverable_by_fallback_provider"] is True
        assert error["status_code"] == 429

    @pytest.mark.asyncio
    async def test_upstream_network_error(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, side_effect=httpx.ConnectError("Connection refused"))
            resp = await client.post("/api/v1/generate", json={"idea": "Build a CLI", "api_key": "sk-test"})

        assert resp.status_code == 502
        assert resp.json()["error"]["kind"] == "network"

    @pytest.mark.asyncio
    async def test_invalid_base_url(self, client):
        with patch("quickprompt.gateway.transport.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"))
            resp = await client.post(
                "/api/v1/generate",
                json={"idea": "Build a CLI", "provider": "custom", "base_url": "http://bad host/v1"},
            )

        assert resp.status_code == 404
        assert resp.json()["error"]["kind"] == "not-found"

    @pytest.mark.asyncio
    async def test_puter_without_bridge(self, client):
        resp = await client.post("/api/v1/generate", json={"idea": "Build a CLI", "provider": "puter"})
        assert resp.status_code == 503
        assert resp.json()["error"]["kind"] == "service-unavailable"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"idea": "   "},
            {"idea": ""},
            {"idea": "ok", "subject_type": "cooking"},
            {"idea": "ok", "provider": "mystery"},
            {},
        ],
    )
    async def test_validation(self, client, payload):
        resp = await client.post("/api/v1/generate", json=payload)
        assert resp.status_code == 422


class TestPreflight:
    @pytest.mark.asyncio
    async def test_remote_provider_skipped(self, client):
        resp = await client.post("/api/v1/preflight", json={"provider": "openai"})
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "error": None, "diagnostic_info": {"skipped": True, "provider": "openai"}}

    @pytest.mark.asyncio
    async def test_ollama_unreachable(self, client):
        with patch("quickprompt.gateway.preflight.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, side_effect=httpx.ConnectError("Connection refused"))
            resp = await client.post("/api/v1/preflight", json={"provider": "ollama"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is False
        assert "Cannot reach Ollama" in data["error"]

    @pytest.mark.asyncio
    async def test_ollama_null_models(self, client):
        with patch("quickprompt.gateway.preflight.httpx.AsyncClient") as mock_client_cls:
            _wire_client(mock_client_cls, _make_httpx_response(200, json_data={"models": None}))
            resp = await client.post("/api/v1/preflight", json={"provider": "ollama"})

        assert resp.status_code == 200
        assert resp.json()["ok"] is False

    @pytest.mark.asyncio
    async def test_custom_endpoint_reachable(self, client):
        with patch("quickprompt.gateway.preflight.httpx.AsyncClient") as mock_client_cls:
            mock_client = _wire_client(mock_client_cls, _make_httpx_response(200, json_data={"data": [{"id": "m1"}]}))
            resp = await client.post(
                "/api/v1/preflight",
                json={"provider": "custom", "base_url": "http://127.0.0.1:1234/v1"},
            )

        assert resp.status_code == 200
        assert resp.json()["ok"] is True
        mock_client.get.assert_awaited_once_with("http://127.0.0.1:1234/v1/models")
