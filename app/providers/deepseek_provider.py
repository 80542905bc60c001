from typing import Any

import httpx

from ..settings import Settings
from .base import LLMResult, ProviderError, Usage, post_json, token_count

DEEPSEEK_MODEL = "deepseek-chat"


def _error_message(body: Any) -> str | None:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message")
    return None


def _decode_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    try:
        return data["choices"][0]["message"].get("content") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def _decode_usage(data: Any) -> Usage:
    usage = data.get("usage") if isinstance(data, dict) else None
    if not isinstance(usage, dict):
        return Usage()
    return Usage(
        prompt_tokens=token_count(usage.get("prompt_tokens")),
        completion_tokens=token_count(usage.get("completion_tokens")),
        total_tokens=token_count(usage.get("total_tokens")),
    )


class DeepSeekProvider:
    provider_name = "deepseek"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def generate(self, prompt: str, model: str = DEEPSEEK_MODEL) -> LLMResult:
        api_key = self._settings.deepseek_api_key
        if not api_key:
            raise ProviderError("DEEPSEEK_API_KEY is not set")

        url = "https://api.deepseek.com/chat/completions"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": DEEPSEEK_MODEL,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._settings.max_output_tokens,
        }
        data = await post_json(
            provider_name="DeepSeek",
            url=url,
            headers=headers,
            payload=payload,
            timeout=self._settings.request_timeout_sec,
            default_error="Failed to generate text with DeepSeek",
            error_message=_error_message,
            transport=self._transport,
        )

        return LLMResult(text=_decode_text(data), usage=_decode_usage(data), provider="deepseek", model=DEEPSEEK_MODEL)
