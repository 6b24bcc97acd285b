from pii_agent.config.settings import Settings
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.example_detector import ExampleDetector
from pii_agent.detection.http_detector import HttpDetector


class DetectorFactory:
    """Creates the configured detector adapter."""

    SUPPORTED_PROVIDERS = ("example", "http")

    @classmethod
    def create(cls, settings: Settings) -> BaseDetector:
        """Create a configured detector from application settings."""
        provider = settings.detector_provider.strip().lower()
        if provider == "example":
            return ExampleDetector()
        if provider == "http":
            base_url = (settings.detector_base_url or "").strip()
            if not base_url:
                raise ValueError("detector_base_url is required for detector_provider=http")
            return HttpDetector(
                base_url=base_url,
                timeout_seconds=settings.detector_timeout_seconds,
                health_timeout_seconds=settings.detector_health_timeout_seconds,
                language=settings.detector_language,
            )
        raise ValueError(
            f"Unknown detector provider '{provider}'. "
            f"Choose from: {list(cls.SUPPORTED_PROVIDERS)}"
        )
