"""Known detection models and normalization of the backend's model list."""

from collections.abc import Iterable
from typing import Any

from pii_agent.classification.models import ModelInfo, Strategy

MODEL_CATALOG: dict[str, ModelInfo] = {
    "piranha": ModelInfo("piranha", "Piranha", "Fast and aggressive PII detection", "High"),
    "presidio": ModelInfo("presidio", "Presidio", "Microsoft's PII detection engine", "Very High"),
    "ai4privacy": ModelInfo("ai4privacy", "AI4Privacy", "Privacy-focused detection model", "High"),
    "bdmbz": ModelInfo("bdmbz", "BDMBZ", "Lightning-fast detection", "Medium"),
    "dbmdz/bert-large-cased-finetuned-conll03-english": ModelInfo(
        "dbmdz/bert-large-cased-finetuned-conll03-english",
        "dbmdz/bert-large-cased-finetuned-conll03-english",
        "HuggingFace NER model",
        "High",
    ),
    "nemo": ModelInfo("nemo", "NEMO", "Precision-targeted detection", "Very High"),
    Strategy.AUTO.value: ModelInfo(Strategy.AUTO.value, "Auto Select", "Adaptive selector", "Dynamic"),
}

DEFAULT_MODEL_KEYS: tuple[str, ...] = (
    "piranha",
    "presidio",
    "ai4privacy",
    "bdmbz",
    "dbmdz/bert-large-cased-finetuned-conll03-english",
    "nemo",
)


def display_name(model_key: str | None) -> str:
    if not model_key:
        return "Unknown Model"
    info = MODEL_CATALOG.get(model_key)
    return (info.name if info else model_key).strip()


def fallback_models() -> list[ModelInfo]:
    """Model list used when the backend health endpoint is unreachable."""
    return [MODEL_CATALOG[key] for key in DEFAULT_MODEL_KEYS]


def normalize_backend_models(raw_models: Iterable[Any] | None) -> list[ModelInfo]:
    """Turn the backend's heterogeneous model list into unique ModelInfo items.

    Entries may be plain keys or dicts carrying ``key``, ``name`` or ``id``.
    Unusable entries are dropped; the first occurrence of a key wins.
    """
    if raw_models is None or isinstance(raw_models, (str, bytes, dict)):
        return []

    models: list[ModelInfo] = []
    seen: set[str] = set()
    for raw in raw_models:
        model = _to_model_info(raw)
        if model is None or model.key in seen:
            continue
        seen.add(model.key)
        models.append(model)
    return models


def _to_model_info(raw: Any) -> ModelInfo | None:
    if not raw:
        return None
    if isinstance(raw, str):
        known = MODEL_CATALOG.get(raw)
        return ModelInfo(raw, known.name if known else raw)
    if not isinstance(raw, dict):
        return None
    key = raw.get("key") or raw.get("name") or raw.get("id")
    if not key:
        return None
    key = str(key)
    known = MODEL_CATALOG.get(key)
    return ModelInfo(
        key=key,
        name=str(raw.get("name") or (known.name if known else key)),
        description=str(raw.get("description") or (known.description if known else "")),
        accuracy=str(raw.get("accuracy") or (known.accuracy if known else "")),
    )
