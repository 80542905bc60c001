from typing import Any

import httpx
from openai import APIConnectionError, APIError, AsyncOpenAI
from openai.types.chat import ChatCompletion

from ..settings import Settings
from .base import LLMResult, ProviderError, Usage, token_count


def _error_message(error: APIError) -> str | None:
    # the SDK unwraps {"error": {...}} into body; prefer the upstream text over its "Error code: ..." summary
    body = error.body
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return error.message


def _decode_text(completion: Any) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def _decode_usage(completion: Any) -> Usage:
    usage = getattr(completion, "usage", None)
    if usage is None:
        return Usage()
    return Usage(
        prompt_tokens=token_count(getattr(usage, "prompt_tokens", 0)),
        completion_tokens=token_count(getattr(usage, "completion_tokens", 0)),
        total_tokens=token_count(getattr(usage, "total_tokens", 0)),
    )


class GroqProvider:
    """Default route: any model id not claimed by another provider is sent
    to Groq as-is, through the OpenAI-compatible SDK client."""

    provider_name = "groq"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def generate(self, prompt: str, model: str) -> LLMResult:
        api_key = self._settings.groq_api_key
        if not api_key:
            raise ProviderError("GROQ_API_KEY is not set")

        http_client = httpx.AsyncClient(timeout=self._settings.request_timeout_sec, transport=self._transport)
        try:
            async with AsyncOpenAI(
                api_key=api_key,
                base_url=self._settings.groq_base_url,
                max_retries=0,
                http_client=http_client,
            ) as client:
                completion = await client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self._settings.max_output_tokens,
                )
        except APIConnectionError as e:
            # also covers APITimeoutError
            raise ProviderError(f"Failed to generate text with Groq: {e}") from e
        except APIError as e:
            raise ProviderError(_error_message(e) or "Failed to generate text with Groq") from e

        # a non-JSON 2xx body comes back from the SDK as a plain str
        if not isinstance(completion, ChatCompletion):
            raise ProviderError("Groq returned a malformed response")

        return LLMResult(text=_decode_text(completion), usage=_decode_usage(completion), provider="groq", model=model)
