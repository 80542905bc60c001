from typing import Any

import httpx

from ..settings import Settings
from .base import LLMResult, ProviderError, Usage, post_json, token_count

GEMINI_MODEL = "gemini-1.5-flash"


def _error_message(body: Any) -> str | None:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message")
    return None


def _decode_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    try:
        return data["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def _decode_usage(data: Any) -> Usage:
    usage = data.get("usageMetadata") if isinstance(data, dict) else None
    if not isinstance(usage, dict):
        return Usage()
    return Usage(
        prompt_tokens=token_count(usage.get("promptTokenCount")),
        completion_tokens=token_count(usage.get("candidatesTokenCount")),
        total_tokens=token_count(usage.get("totalTokenCount")),
    )


class GoogleProvider:
    provider_name = "google"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def generate(self, prompt: str, model: str = GEMINI_MODEL) -> LLMResult:
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise ProviderError("GEMINI_API_KEY is not set")

        url = f"https://generativelanguage.googleapis.com/v1beta/models/{GEMINI_MODEL}:generateContent"
        # header auth keeps the key out of logged request URLs
        headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": self._settings.max_output_tokens},
        }
        data = await post_json(
            provider_name="Gemini",
            url=url,
            headers=headers,
            payload=payload,
            timeout=self._settings.request_timeout_sec,
            default_error="Failed to generate text with Gemini",
            error_message=_error_message,
            transport=self._transport,
        )

        return LLMResult(text=_decode_text(data), usage=_decode_usage(data), provider="google", model=GEMINI_MODEL)
