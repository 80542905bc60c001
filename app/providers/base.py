import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_payload(self) -> dict:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class LLMResult:
    text: str
    usage: Usage = field(default_factory=Usage)
    provider: str = ""
    model: str = ""


class ProviderError(Exception):
    """Adapter failure whose message is safe to hand back to the caller."""


class Provider(Protocol):
    provider_name: str
    async def generate(self, prompt: str, model: str) -> LLMResult: ...


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


def token_count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


async def post_json(
    *,
    provider_name: str,
    url: str,
    headers: dict,
    payload: dict,
    timeout: float,
    default_error: str,
    error_message: Callable[[Any], str | None],
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST *payload* and return the decoded JSON body.

    Transport failures, non-2xx statuses and undecodable success bodies all
    surface as ``ProviderError``. On rejection the upstream message is used
    when ``error_message`` can pull one out of the body, else ``default_error``.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as e:
        raise ProviderError(f"{default_error}: {e}") from e

    if r.is_error:
        try:
            body = r.json()
        except ValueError:
            body = None
        logger.warning("%s rejected request with HTTP %s", provider_name, r.status_code)
        raise ProviderError(error_message(body) or default_error)

    try:
        return r.json()
    except ValueError as e:
        raise ProviderError(f"{provider_name} returned a malformed response") from e
