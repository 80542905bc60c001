import logging
from pathlib import Path
from typing import Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from .catalog import AVAILABLE_MODELS, DEFAULT_SELECTION, catalog_payload
from .orchestrator.router import ProviderKind, build_providers, dispatch
from .providers.base import LLMResult, Provider, ProviderError
from .settings import Settings, get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="LLM Compare")
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_providers(settings: Settings = Depends(get_settings)) -> Dict[ProviderKind, Provider]:
    return build_providers(settings)


def _payload(result: LLMResult) -> dict:
    return {"text": result.text, "usage": result.usage.to_payload()}


def _missing_input() -> JSONResponse:
    return JSONResponse({"error": "Missing prompt or model"}, status_code=400)


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    return templates.TemplateResponse(request, "index.html", {
        "title": "LLM Compare",
        "models": AVAILABLE_MODELS,
        "selected": DEFAULT_SELECTION,
    })


@app.get("/api/models")
def models():
    return catalog_payload()


@app.post("/api/compare")
async def compare(request: Request, providers: Dict[ProviderKind, Provider] = Depends(get_providers)):
    try:
        body = await request.json()
    except ValueError:
        return _missing_input()
    if not isinstance(body, dict):
        return _missing_input()

    prompt = body.get("prompt")
    model = body.get("model")
    if not isinstance(prompt, str) or not prompt or not isinstance(model, str) or not model:
        return _missing_input()

    try:
        result = await dispatch(prompt, model, providers)
    except ProviderError as e:
        logger.warning("generation failed for %s: %s", model, e)
        return JSONResponse({"error": str(e)}, status_code=500)
    except Exception as e:
        logger.exception("unexpected error generating text for %s", model)
        return JSONResponse({"error": str(e) or "Failed to generate text"}, status_code=500)

    return _payload(result)


@app.get("/health")
def health():
    return PlainTextResponse("ok")
