import asyncio
import os
import sys

import httpx
from dotenv import load_dotenv

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.catalog import DEFAULT_SELECTION
from app.orchestrator.runner import run_comparison

load_dotenv()

if len(sys.argv) < 2:
    sys.exit("usage: python scripts/compare.py \"<prompt>\"")

PROMPT = " ".join(sys.argv[1:])
BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000").rstrip("/")
MODELS = [m.strip() for m in os.environ.get("COMPARE_MODELS", "").split(",") if m.strip()] or list(DEFAULT_SELECTION)
TIMEOUT = float(os.environ.get("COMPARE_TIMEOUT_SEC", "120"))


async def main():
    async with httpx.AsyncClient(base_url=BASE_URL, timeout=TIMEOUT) as client:
        return await run_comparison(client, PROMPT, MODELS)


for r in asyncio.run(main()):
    print(f"== {r.model_name} [{r.status}]")
    if r.status == "success":
        print(f"{r.response_time:.2f}s  {r.tokens_per_second:.1f} tok/s  {r.total_tokens} tokens")
        print(r.text)
    else:
        print(f"error: {r.error}")
    print()
