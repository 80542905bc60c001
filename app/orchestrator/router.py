import enum
import logging
from typing import Dict

import httpx

from ..catalog import AVAILABLE_MODELS
from ..providers.base import LLMResult, Provider
from ..providers.deepseek_provider import DeepSeekProvider
from ..providers.google_provider import GoogleProvider
from ..providers.groq_provider import GroqProvider
from ..providers.huggingface_provider import HuggingFaceProvider
from ..settings import Settings

logger = logging.getLogger(__name__)


class ProviderKind(enum.Enum):
    GROQ = "groq"
    GEMINI = "gemini"
    HUGGINGFACE = "huggingface"
    DEEPSEEK = "deepseek"


# Model ids claimed by a dedicated provider. Everything else is a Groq model name.
SPECIAL_ROUTES: Dict[str, ProviderKind] = {
    "gemini-1.5-flash": ProviderKind.GEMINI,
    "huggingface-mixtral": ProviderKind.HUGGINGFACE,
    "deepseek-chat": ProviderKind.DEEPSEEK,
}

CATALOG_IDS = frozenset(m.id for m in AVAILABLE_MODELS)


def route_model(model: str) -> ProviderKind:
    return SPECIAL_ROUTES.get(model, ProviderKind.GROQ)


def build_providers(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Dict[ProviderKind, Provider]:
    providers: Dict[ProviderKind, Provider] = {
        ProviderKind.GROQ: GroqProvider(settings, transport),
        ProviderKind.GEMINI: GoogleProvider(settings, transport),
        ProviderKind.HUGGINGFACE: HuggingFaceProvider(settings, transport),
        ProviderKind.DEEPSEEK: DeepSeekProvider(settings, transport),
    }
    missing = set(ProviderKind) - providers.keys()
    if missing:
        raise RuntimeError(f"no provider registered for: {sorted(k.value for k in missing)}")
    return providers


async def dispatch(prompt: str, model: str, providers: Dict[ProviderKind, Provider]) -> LLMResult:
    kind = route_model(model)
    if model not in CATALOG_IDS:
        logger.info("model %r is not in the catalog, sending it to %s as-is", model, kind.value)
    logger.debug("routing model %r to %s", model, kind.value)
    return await providers[kind].generate(prompt, model)
