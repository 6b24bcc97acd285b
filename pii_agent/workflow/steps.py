import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.anonymization.exceptions import SubstitutionError
from pii_agent.anonymization.substitution import apply_substitutions
from pii_agent.classification.classifier import resolve_strategy
from pii_agent.classification.models import Strategy
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.exceptions import DetectorError
from pii_agent.logging.logger import Log
from pii_agent.mapping.exceptions import (
    ConflictingSubstituteError,
    InvalidSubstituteError,
    UnknownEntityError,
)
from pii_agent.revert.engine import RevertEngine
from pii_agent.revert.models import RevertReport
from pii_agent.surface.base import ChatSurface, RenderedView, ResponseObserver
from pii_agent.workflow.dispatch_guard import DispatchGuard
from pii_agent.workflow.exceptions import (
    DetectionFailedError,
    DispatchFailedError,
    SubstitutionFailedError,
)
from pii_agent.workflow.models import WorkflowRun
from pii_agent.workflow.outbound import collect_entities, fill_substitutes
from pii_agent.workflow.response_waiter import ResponseWaiter
from pii_agent.workflow.states import Phase


@dataclass(slots=True)
class WorkflowContext:
    run: WorkflowRun
    prompt: str
    selected_strategy: Strategy = Strategy.AUTO
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    outbound_text: str = ""
    response_text: str = ""
    view: RenderedView | None = None
    revert_report: RevertReport | None = None


class WorkflowStep(ABC):
    phase: ClassVar[Phase]

    @abstractmethod
    async def run(self, context: WorkflowContext) -> WorkflowContext:
        raise NotImplementedError


class ScanStep(WorkflowStep):
    phase = Phase.SCANNING

    def __init__(self, detector: BaseDetector) -> None:
        self._detector = detector

    async def run(self, context: WorkflowContext) -> WorkflowContext:
        classification = resolve_strategy(context.selected_strategy, context.prompt)
        context.run.strategy = classification.strategy
        context.run.rationale = classification.rationale
        Log.info(f"Scanning prompt with strategy {classification.strategy.value}")

        try:
            detected = await self._detector.detect(context.prompt, classification.strategy)
        except (DetectorError, TimeoutError) as exc:
            raise DetectionFailedError(f"Detector failed: {exc}") from exc

        entities = collect_entities(detected, context.prompt)
        for entity in entities:
            context.run.mappings.put(entity)
        Log.info(f"Detected {len(entities)} entities")
        return context


class SubstituteStep(WorkflowStep):
    phase = Phase.SUBSTITUTING

    def __init__(self, generator: BaseSubstituteGenerator, surface: ChatSurface) -> None:
        self._generator = generator
        self._surface = surface

    async def run(self, context: WorkflowContext) -> WorkflowContext:
        try:
            entities = fill_substitutes(context.run.mappings, self._generator)
            result = apply_substitutions(context.prompt, entities)
        except (
            SubstitutionError,
            InvalidSubstituteError,
            ConflictingSubstituteError,
            UnknownEntityError,
        ) as exc:
            raise SubstitutionFailedError(f"Substitution failed: {exc}") from exc

        context.outbound_text = result.text
        if entities:
            self._surface.set_editable_text(result.text)
        Log.info(f"Applied {len(result.applied)} substitutes to outbound text")
        return context


class DispatchStep(WorkflowStep):
    phase = Phase.DISPATCHING

    def __init__(self, surface: ChatSurface, guard: DispatchGuard) -> None:
        self._surface = surface
        self._guard = guard

    async def run(self, context: WorkflowContext) -> WorkflowContext:
        if self._guard.recently_dispatched():
            Log.warning("Dispatch suppressed, a submit already happened moments ago")
            return context
        if not self._surface.submit():
            raise DispatchFailedError("No send affordance available on the surface")
        self._guard.mark()
        Log.info("Prompt dispatched")
        return context


class AwaitResponseStep(WorkflowStep):
    phase = Phase.AWAITING_RESPONSE

    def __init__(self, waiter: ResponseWaiter) -> None:
        self._waiter = waiter

    async def run(self, context: WorkflowContext) -> WorkflowContext:
        context.response_text = await self._waiter.wait(
            context.run.baseline_response_count,
            context.cancel_event,
        )
        Log.info(f"Response received ({len(context.response_text)} chars)")
        return context


class RevertStep(WorkflowStep):
    phase = Phase.REVERTING

    def __init__(self, engine: RevertEngine, observer: ResponseObserver) -> None:
        self._engine = engine
        self._observer = observer

    async def run(self, context: WorkflowContext) -> WorkflowContext:
        context.view = self._observer.rendered_view()
        context.revert_report = await self._engine.run(
            context.view,
            context.run.mappings.filled(),
        )
        Log.info(
            f"Restored {context.revert_report.restored_count} of "
            f"{len(context.run.mappings)} entities in "
            f"{len(context.revert_report.attempts)} attempt(s)"
        )
        return context
