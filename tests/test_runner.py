"""
Tests for app.orchestrator.runner (ModelResult lifecycle, concurrent fan-out)
- run_comparison is driven against the in-process app through httpx.ASGITransport
"""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.main import app, get_providers
from app.orchestrator.router import ProviderKind
from app.orchestrator.runner import ModelResult, run_comparison
from app.providers.base import LLMResult, ProviderError, Usage


def run(coro):
    return asyncio.run(coro)


async def compare_in_app(prompt, model_ids):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await run_comparison(client, prompt, model_ids)


async def compare_with_handler(handler, prompt, model_ids):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        return await run_comparison(client, prompt, model_ids)


def delayed(delay, text=None, error=None):
    async def generate(prompt, model):
        await asyncio.sleep(delay)
        if error is not None:
            raise error
        return LLMResult(text=text, usage=Usage(4, 6, 10))

    prov = MagicMock()
    prov.generate = AsyncMock(side_effect=generate)
    return prov


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════════
# ModelResult
# ═══════════════════════════════════════════════════════════════
class TestModelResult:
    def test_pending_uses_catalog_name(self):
        r = ModelResult.pending("llama-3.1-8b-instant")
        assert r.status == "pending"
        assert r.model_name == "Llama 3.1 8B"

    def test_pending_unknown_model_name_is_id(self):
        assert ModelResult.pending("custom-model").model_name == "custom-model"

    def test_succeed_computes_throughput(self):
        r = ModelResult.pending("deepseek-chat")
        r.succeed(text="hi", response_time=2.0, total_tokens=10)
        assert r.status == "success"
        assert r.tokens_per_second == 5.0

    def test_zero_time_zero_throughput(self):
        r = ModelResult.pending("deepseek-chat")
        r.succeed(text="hi", response_time=0.0, total_tokens=10)
        assert r.tokens_per_second == 0.0

    def test_fail(self):
        r = ModelResult.pending("deepseek-chat")
        r.fail("nope")
        assert r.status == "error"
        assert r.error == "nope"
        assert r.total_tokens == 0
        assert r.response_time == 0.0

    def test_settles_once(self):
        r = ModelResult.pending("deepseek-chat")
        r.fail("nope")
        with pytest.raises(RuntimeError):
            r.succeed(text="late", response_time=1.0, total_tokens=1)
        assert r.status == "error"

    def test_payload_keys(self):
        r = ModelResult.pending("gemini-1.5-flash")
        r.succeed(text="x", response_time=1.0, total_tokens=3)
        payload = r.to_payload()
        assert payload["modelName"] == "Gemini 1.5 Flash"
        assert payload["tokensPerSecond"] == 3.0
        assert "error" not in payload


# ═══════════════════════════════════════════════════════════════
# run_comparison
# ═══════════════════════════════════════════════════════════════
class TestRunComparison:
    def test_blank_prompt_sends_nothing(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        assert run(compare_with_handler(handler, "   ", ["deepseek-chat"])) == []
        assert calls == []

    def test_no_models_sends_nothing(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        assert run(compare_with_handler(handler, "hi", [])) == []
        assert calls == []

    def test_one_request_per_model(self):
        seen = []

        def handler(request):
            seen.append(request.read())
            return httpx.Response(200, json={"text": "ok", "usage": {"totalTokens": 2}})

        results = run(compare_with_handler(handler, "hi", ["a", "b", "c"]))
        assert len(seen) == 3
        assert [r.model for r in results] == ["a", "b", "c"]
        assert all(r.status == "success" and r.total_tokens == 2 for r in results)

    def test_error_body_becomes_error_result(self):
        def handler(request):
            return httpx.Response(500, json={"error": "HF_API_KEY is not set"})

        [r] = run(compare_with_handler(handler, "hi", ["huggingface-mixtral"]))
        assert r.status == "error"
        assert r.error == "HF_API_KEY is not set"

    def test_error_without_message(self):
        def handler(request):
            return httpx.Response(502, json={})

        [r] = run(compare_with_handler(handler, "hi", ["deepseek-chat"]))
        assert r.error == "Failed to get response"

    def test_transport_failure_becomes_error_result(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        [r] = run(compare_with_handler(handler, "hi", ["deepseek-chat"]))
        assert r.status == "error"
        assert "connection refused" in r.error

    def test_missing_usage_counts_zero(self):
        def handler(request):
            return httpx.Response(200, json={"text": "ok"})

        [r] = run(compare_with_handler(handler, "hi", ["deepseek-chat"]))
        assert r.status == "success"
        assert r.total_tokens == 0
        assert r.tokens_per_second == 0.0

    def test_fan_out_isolates_failure(self):
        app.dependency_overrides[get_providers] = lambda: {
            ProviderKind.GROQ: delayed(0.05, text="from groq"),
            ProviderKind.DEEPSEEK: delayed(0.05, text="from deepseek"),
            ProviderKind.GEMINI: delayed(0.5, error=ProviderError("upstream timed out")),
            ProviderKind.HUGGINGFACE: delayed(0.0, text="unused"),
        }

        results = run(compare_in_app("hi", ["llama-3.3-70b-versatile", "gemini-1.5-flash", "deepseek-chat"]))
        by_model = {r.model: r for r in results}

        assert [r.model for r in results] == ["llama-3.3-70b-versatile", "gemini-1.5-flash", "deepseek-chat"]
        assert by_model["gemini-1.5-flash"].status == "error"
        assert by_model["gemini-1.5-flash"].error == "upstream timed out"
        assert by_model["llama-3.3-70b-versatile"].text == "from groq"
        assert by_model["deepseek-chat"].text == "from deepseek"
        for model in ("llama-3.3-70b-versatile", "deepseek-chat"):
            assert by_model[model].status == "success"
            assert by_model[model].total_tokens == 10
            assert by_model[model].response_time < 0.4

    def test_requests_run_concurrently(self):
        app.dependency_overrides[get_providers] = lambda: {
            kind: delayed(0.3, text=kind.value) for kind in ProviderKind
        }

        async def timed():
            loop = asyncio.get_running_loop()
            started = loop.time()
            results = await compare_in_app(
                "hi", ["llama-3.3-70b-versatile", "gemini-1.5-flash", "huggingface-mixtral", "deepseek-chat"]
            )
            return results, loop.time() - started

        results, elapsed = run(timed())
        assert all(r.status == "success" for r in results)
        assert elapsed < 1.0
