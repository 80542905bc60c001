from typing import Any

import httpx

from ..settings import Settings
from .base import LLMResult, ProviderError, Usage, estimate_tokens, post_json

HF_MODEL = "mistralai/Mixtral-8x7B-Instruct-v0.1"


def format_instruction(prompt: str) -> str:
    return f"<s>[INST] {prompt} [/INST]"


def _error_message(body: Any) -> str | None:
    # post_json hands over None when the error body could not be decoded
    if body is None:
        return "Unknown error"
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


def _decode_text(data: Any) -> str:
    # the inference API answers with either a list of generations or a single object
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return ""
    text = data.get("generated_text") or ""
    return text if isinstance(text, str) else ""


def _estimate_usage(prompt: str, text: str) -> Usage:
    prompt_tokens = estimate_tokens(prompt)
    completion_tokens = estimate_tokens(text)
    return Usage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )


class HuggingFaceProvider:
    provider_name = "huggingface"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def generate(self, prompt: str, model: str = HF_MODEL) -> LLMResult:
        api_key = self._settings.hf_api_key
        if not api_key:
            raise ProviderError("HF_API_KEY is not set")

        url = f"https://api-inference.huggingface.co/models/{HF_MODEL}"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "inputs": format_instruction(prompt),
            "parameters": {
                "max_new_tokens": self._settings.max_output_tokens,
                "return_full_text": False,
                "temperature": 0.7,
            },
        }
        data = await post_json(
            provider_name="Huggingface",
            url=url,
            headers=headers,
            payload=payload,
            timeout=self._settings.request_timeout_sec,
            default_error="Failed to generate text with Huggingface",
            error_message=_error_message,
            transport=self._transport,
        )

        raw_text = _decode_text(data)
        # usage is estimated on the unstripped generation
        return LLMResult(
            text=raw_text.strip(),
            usage=_estimate_usage(prompt, raw_text),
            provider="huggingface",
            model=HF_MODEL,
        )
