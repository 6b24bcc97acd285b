from typing import Any

import httpx

from pii_agent.classification.catalog import normalize_backend_models
from pii_agent.classification.models import Strategy
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.exceptions import (
    DetectorError,
    DetectorTimeoutError,
    ServiceUnavailableError,
)
from pii_agent.detection.models import DetectedEntity, HealthStatus
from pii_agent.logging.logger import Log
from pii_agent.mapping.models import EntityType, Span


class HttpDetector(BaseDetector):
    """Detection adapter for the PII backend's HTTP API.

    Endpoints: ``POST /detect-pii`` and ``GET /health``.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        health_timeout_seconds: float = 5.0,
        language: str = "en",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._language = language
        self._health_timeout = health_timeout_seconds
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
        )

    async def detect(self, text: str, strategy: Strategy) -> list[DetectedEntity]:
        payload: dict[str, Any] = {"text": text, "language": self._language}
        if strategy is not Strategy.AUTO:
            payload["model"] = strategy.value

        Log.info(f"Requesting PII detection ({len(text)} chars, model={strategy.value})")
        data = await self._request("POST", "/detect-pii", json=payload)

        raw_entities = data.get("detected_entities")
        if raw_entities is None:
            raw_entities = []
        if not isinstance(raw_entities, list):
            raise DetectorError("detected_entities must be a list")

        entities = [e for e in (self._parse_entity(raw, text) for raw in raw_entities) if e]
        model_used = data.get("model_key") or data.get("model_used") or strategy.value
        Log.info(f"Backend model '{model_used}' detected {len(entities)} PII entities")
        return entities

    async def health(self) -> HealthStatus:
        try:
            data = await self._request("GET", "/health", timeout=self._health_timeout)
        except DetectorError as exc:
            Log.warning(f"Detector health check failed: {exc}")
            return HealthStatus(healthy=False)

        models = normalize_backend_models(data.get("models"))
        default_model = data.get("default_model")
        healthy = data.get("status") == "healthy" and bool(models or default_model)
        return HealthStatus(healthy=healthy, models=models, default_model=default_model)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise DetectorTimeoutError(f"Detector request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status >= 500:
                raise ServiceUnavailableError(f"Detector returned HTTP {status}") from exc
            raise DetectorError(f"Detector rejected request with HTTP {status}") from exc
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(f"Cannot connect to detector: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise DetectorError(f"Invalid JSON from detector: {exc}") from exc
        if not isinstance(data, dict):
            raise DetectorError("Detector response must be a JSON object")
        return data

    @staticmethod
    def _parse_entity(raw: Any, text: str) -> DetectedEntity | None:
        if not isinstance(raw, dict):
            return None
        value = raw.get("value") or raw.get("text") or ""
        if not value:
            return None

        start, end = raw.get("start"), raw.get("end")
        if not isinstance(start, int) or not isinstance(end, int) or end <= start:
            idx = text.find(value)
            if idx == -1:
                Log.debug("Skipping detected entity whose value is absent from the text")
                return None
            start, end = idx, idx + len(value)

        score = raw.get("score", raw.get("confidence"))
        return DetectedEntity(
            type=EntityType.from_label(raw.get("type") or raw.get("entity_type")),
            original=value,
            span=Span(start, end),
            score=float(score) if isinstance(score, (int, float)) else None,
        )
