from dataclasses import dataclass, field

from pii_agent.classification.models import ModelInfo
from pii_agent.mapping.models import EntityType, Span


@dataclass(frozen=True)
class DetectedEntity:
    """A PII span reported by a detector."""

    type: EntityType
    original: str
    span: Span
    score: float | None = None


@dataclass(frozen=True)
class HealthStatus:
    """Backend health as reported by the detector."""

    healthy: bool
    models: list[ModelInfo] = field(default_factory=list)
    default_model: str | None = None
