import json
from collections.abc import Callable

import httpx
import pytest

from pii_agent.classification.catalog import fallback_models
from pii_agent.classification.models import Strategy
from pii_agent.detection.exceptions import (
    DetectorError,
    DetectorTimeoutError,
    ServiceUnavailableError,
)
from pii_agent.detection.http_detector import HttpDetector
from pii_agent.mapping.models import EntityType, Span

Handler = Callable[[httpx.Request], httpx.Response]


def _make_detector(handler: Handler) -> HttpDetector:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://detector.test",
    )
    return HttpDetector(base_url="http://detector.test", timeout_seconds=5, client=client)


class TestDetect:
    @pytest.mark.asyncio
    async def test_posts_text_language_and_model(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"detected_entities": []})

        detector = _make_detector(handler)
        await detector.detect("hello", Strategy.LOCATION_SPECIALIST)

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/detect-pii"
        assert json.loads(seen[0].content) == {"text": "hello", "language": "en", "model": "nemo"}

    @pytest.mark.asyncio
    async def test_auto_strategy_omits_model(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"detected_entities": []})

        await _make_detector(handler).detect("hello", Strategy.AUTO)

        assert "model" not in bodies[0]

    @pytest.mark.asyncio
    async def test_parses_entities(self) -> None:
        text = "I am John Smith from Springfield"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "detected_entities": [
                        {"type": "PERSON", "value": "John Smith", "start": 5, "end": 15, "score": 0.98},
                        {"entity_type": "GPE", "text": "Springfield"},
                    ],
                    "model_key": "presidio",
                },
            )

        entities = await _make_detector(handler).detect(text, Strategy.GENERAL_PURPOSE)

        assert [(e.type, e.original, e.span) for e in entities] == [
            (EntityType.PERSON, "John Smith", Span(5, 15)),
            (EntityType.LOCATION, "Springfield", Span(21, 32)),
        ]
        assert entities[0].score == pytest.approx(0.98)
        assert entities[1].score is None

    @pytest.mark.asyncio
    async def test_skips_unusable_entities(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"detected_entities": ["junk", {"type": "PERSON"}, {"value": "Nobody"}]},
            )

        assert await _make_detector(handler).detect("hello", Strategy.AUTO) == []

    @pytest.mark.asyncio
    async def test_non_list_entities_raise(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"detected_entities": "oops"})

        with pytest.raises(DetectorError, match="must be a list"):
            await _make_detector(handler).detect("hello", Strategy.AUTO)


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_server_error_is_service_unavailable(self) -> None:
        detector = _make_detector(lambda request: httpx.Response(503))
        with pytest.raises(ServiceUnavailableError, match="503"):
            await detector.detect("hello", Strategy.AUTO)

    @pytest.mark.asyncio
    async def test_client_error_is_detector_error(self) -> None:
        detector = _make_detector(lambda request: httpx.Response(422))
        with pytest.raises(DetectorError) as exc_info:
            await detector.detect("hello", Strategy.AUTO)
        assert not isinstance(exc_info.value, ServiceUnavailableError)

    @pytest.mark.asyncio
    async def test_connection_error_is_service_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ServiceUnavailableError, match="Cannot connect"):
            await _make_detector(handler).detect("hello", Strategy.AUTO)

    @pytest.mark.asyncio
    async def test_timeout_is_detector_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(DetectorTimeoutError) as exc_info:
            await _make_detector(handler).detect("hello", Strategy.AUTO)
        assert isinstance(exc_info.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_invalid_json_is_detector_error(self) -> None:
        detector = _make_detector(lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(DetectorError, match="Invalid JSON"):
            await detector.detect("hello", Strategy.AUTO)

    @pytest.mark.asyncio
    async def test_non_object_body_is_detector_error(self) -> None:
        detector = _make_detector(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(DetectorError, match="JSON object"):
            await detector.detect("hello", Strategy.AUTO)


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy_backend(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/health"
            return httpx.Response(
                200,
                json={"status": "healthy", "models": ["presidio", "nemo"], "default_model": "presidio"},
            )

        status = await _make_detector(handler).health()

        assert status.healthy
        assert [m.key for m in status.models] == ["presidio", "nemo"]
        assert status.default_model == "presidio"

    @pytest.mark.asyncio
    async def test_unreachable_backend_is_unhealthy(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        status = await _make_detector(handler).health()

        assert not status.healthy
        assert status.models == []

    @pytest.mark.asyncio
    async def test_degraded_status_is_unhealthy(self) -> None:
        detector = _make_detector(
            lambda request: httpx.Response(200, json={"status": "loading", "models": ["nemo"]})
        )
        assert not (await detector.health()).healthy


class TestAvailableModels:
    @pytest.mark.asyncio
    async def test_uses_backend_models_when_healthy(self) -> None:
        detector = _make_detector(
            lambda request: httpx.Response(
                200, json={"status": "healthy", "models": ["nemo", {"key": "custom", "name": "Custom"}]}
            )
        )
        models = await detector.available_models()
        assert [(m.key, m.name) for m in models] == [("nemo", "NEMO"), ("custom", "Custom")]

    @pytest.mark.asyncio
    async def test_falls_back_to_catalog_when_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        models = await _make_detector(handler).available_models()
        assert models == fallback_models()
