from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    name: str
    tag: str


# Production models are stable; Preview models are for evaluation only and may be withdrawn.
AVAILABLE_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor("llama-3.3-70b-versatile", "Llama 3.3 70B", "Production"),
    ModelDescriptor("llama-3.1-8b-instant", "Llama 3.1 8B", "Fast"),
    ModelDescriptor("meta-llama/llama-4-scout-17b-16e-instruct", "Llama 4 Scout", "Preview"),
    ModelDescriptor("gemini-1.5-flash", "Gemini 1.5 Flash", "Google"),
    ModelDescriptor("huggingface-mixtral", "Mixtral 8x7B", "Huggingface"),
    ModelDescriptor("deepseek-chat", "DeepSeek Chat", "DeepSeek"),
)

DEFAULT_SELECTION: tuple[str, ...] = tuple(m.id for m in AVAILABLE_MODELS[:3])


def model_name(model_id: str) -> str:
    for m in AVAILABLE_MODELS:
        if m.id == model_id:
            return m.name
    return model_id


def catalog_payload() -> dict:
    return {
        "models": [asdict(m) for m in AVAILABLE_MODELS],
        "default": list(DEFAULT_SELECTION),
    }
