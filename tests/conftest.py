from collections.abc import Callable

import pytest

from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.classification.models import Strategy
from pii_agent.config.settings import Settings
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.models import DetectedEntity
from pii_agent.mapping.models import EntityType, Span
from pii_agent.surface.base import ChatSurface, ResponseObserver, Unsubscribe


class FakeObserver(ResponseObserver):
    """Scripted observer: tests push responses and edits explicitly."""

    def __init__(self) -> None:
        self.responses: list[str] = []
        self.subscribers: list[Callable[[], None]] = []

    def subscribe(self, on_change: Callable[[], None]) -> Unsubscribe:
        self.subscribers.append(on_change)
        return lambda: self.subscribers.remove(on_change)

    def count_responses(self) -> int:
        return len(self.responses)

    def get_latest_response_text(self) -> str:
        return self.responses[-1] if self.responses else ""

    def push_response(self, text: str) -> None:
        self.responses.append(text)
        self._notify()

    def update_latest(self, text: str) -> None:
        self.responses[-1] = text
        self._notify()

    def _notify(self) -> None:
        for callback in list(self.subscribers):
            callback()


class FakeChatSurface(ChatSurface):
    """Editable prompt that optionally echoes the sent text back as a response."""

    def __init__(
        self,
        text: str = "",
        observer: FakeObserver | None = None,
        echo: bool = True,
        can_submit: bool = True,
        automatable: bool = True,
    ) -> None:
        self.text = text
        self.sent: list[str] = []
        self._observer = observer
        self._echo = echo
        self._can_submit = can_submit
        self._automatable = automatable

    def supports_automation(self) -> bool:
        return self._automatable

    def get_editable_text(self) -> str:
        return self.text

    def set_editable_text(self, text: str) -> None:
        self.text = text

    def submit(self) -> bool:
        if not self._can_submit:
            return False
        self.sent.append(self.text)
        if self._echo and self._observer is not None:
            self._observer.push_response(self.text)
        return True


class FakeDetector(BaseDetector):
    """Reports every occurrence of the configured values, or raises *error*."""

    def __init__(
        self,
        values: dict[str, EntityType] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._values = values or {}
        self._error = error
        self.calls: list[tuple[str, Strategy]] = []
        self.closed = False

    async def detect(self, text: str, strategy: Strategy) -> list[DetectedEntity]:
        self.calls.append((text, strategy))
        if self._error is not None:
            raise self._error
        entities = []
        for value, entity_type in self._values.items():
            start = text.find(value)
            if start != -1:
                entities.append(DetectedEntity(entity_type, value, Span(start, start + len(value))))
        return entities

    async def aclose(self) -> None:
        self.closed = True


class FixedGenerator(BaseSubstituteGenerator):
    """Returns a fixed substitute per entity type."""

    def __init__(self, substitutes: dict[EntityType, str]) -> None:
        self._substitutes = substitutes
        self.calls: list[tuple[EntityType, str]] = []

    def generate(self, entity_type: EntityType, original: str) -> str:
        self.calls.append((entity_type, original))
        return self._substitutes[entity_type]


@pytest.fixture()
def fast_settings() -> Settings:
    """Settings with timers shrunk so workflow tests finish quickly."""
    return Settings(
        detector_provider="example",
        response_timeout_seconds=1.0,
        stability_checks=3,
        stability_interval_seconds=0.01,
        revert_max_attempts=5,
        revert_attempt_interval_seconds=0.0,
        mapping_clear_delay_seconds=0.05,
        dispatch_guard_seconds=3.0,
        faker_seed=1234,
    )


@pytest.fixture()
def observer() -> FakeObserver:
    return FakeObserver()


@pytest.fixture()
def make_surface(observer: FakeObserver) -> Callable[..., FakeChatSurface]:
    def _make(text: str = "", **kwargs: bool) -> FakeChatSurface:
        return FakeChatSurface(text, observer=observer, **kwargs)

    return _make


@pytest.fixture()
def make_detector() -> Callable[..., FakeDetector]:
    return FakeDetector


@pytest.fixture()
def make_generator() -> Callable[..., FixedGenerator]:
    return FixedGenerator
