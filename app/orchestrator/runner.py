import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import httpx

from ..catalog import model_name
from ..providers.base import token_count

logger = logging.getLogger(__name__)

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"


@dataclass
class ModelResult:
    model: str
    model_name: str
    text: str = ""
    response_time: float = 0.0
    tokens_per_second: float = 0.0
    total_tokens: int = 0
    status: str = PENDING
    error: str | None = None

    @classmethod
    def pending(cls, model_id: str) -> "ModelResult":
        return cls(model=model_id, model_name=model_name(model_id))

    def succeed(self, *, text: str, response_time: float, total_tokens: int) -> None:
        self._settle(SUCCESS)
        self.text = text
        self.response_time = response_time
        self.total_tokens = total_tokens
        self.tokens_per_second = total_tokens / response_time if response_time > 0 else 0.0

    def fail(self, message: str) -> None:
        self._settle(ERROR)
        self.error = message

    def _settle(self, status: str) -> None:
        # a result settles once; there are no retries
        if self.status != PENDING:
            raise RuntimeError(f"result for {self.model!r} already settled as {self.status}")
        self.status = status

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "modelName": self.model_name,
            "text": self.text,
            "responseTime": self.response_time,
            "tokensPerSecond": self.tokens_per_second,
            "totalTokens": self.total_tokens,
            "status": self.status,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


async def _compare_one(client: httpx.AsyncClient, prompt: str, model_id: str) -> ModelResult:
    result = ModelResult.pending(model_id)
    started = time.perf_counter()
    try:
        r = await client.post("/api/compare", json={"prompt": prompt, "model": model_id})
        body = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("compare request for %s failed: %s", model_id, e)
        result.fail(str(e) or "Unknown error")
        return result

    elapsed = time.perf_counter() - started
    if not isinstance(body, dict):
        body = {}

    if r.is_error:
        result.fail(body.get("error") or "Failed to get response")
        return result

    usage = body.get("usage")
    total_tokens = token_count(usage.get("totalTokens")) if isinstance(usage, dict) else 0
    result.succeed(text=body.get("text") or "", response_time=elapsed, total_tokens=total_tokens)
    return result


async def run_comparison(
    client: httpx.AsyncClient,
    prompt: str,
    model_ids: Sequence[str],
) -> List[ModelResult]:
    """Send *prompt* to every model in *model_ids* at once via ``POST /api/compare``.

    Waits for every request to settle and returns one result per model, in
    selection order. A failed request becomes an ``error`` result and never
    cancels or delays its siblings.
    """
    if not prompt.strip() or not model_ids:
        return []
    outcomes = await asyncio.gather(*[_compare_one(client, prompt, m) for m in model_ids])
    return list(outcomes)
