from abc import ABC, abstractmethod

from pii_agent.classification.catalog import fallback_models
from pii_agent.classification.models import ModelInfo, Strategy
from pii_agent.detection.models import DetectedEntity, HealthStatus


class BaseDetector(ABC):
    """Contract for all PII detection adapters."""

    @abstractmethod
    async def detect(self, text: str, strategy: Strategy) -> list[DetectedEntity]:
        """Detect PII spans in *text* using the model behind *strategy*.

        Raises:
            ServiceUnavailableError: the backend is unreachable.
            DetectorTimeoutError: the backend did not answer in time.
            DetectorError: on any other failure.
        """

    async def health(self) -> HealthStatus:
        """Report backend availability; adapters without a backend are always healthy."""
        return HealthStatus(healthy=True)

    async def available_models(self) -> list[ModelInfo]:
        """Models the backend offers, or the built-in catalog when it cannot say."""
        status = await self.health()
        if status.healthy and status.models:
            return status.models
        return fallback_models()

    async def aclose(self) -> None:
        """Release adapter resources."""
