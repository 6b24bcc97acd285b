import asyncio
import uuid

from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.anonymization.factory import SubstituteGeneratorFactory
from pii_agent.classification.classifier import classify
from pii_agent.classification.catalog import fallback_models
from pii_agent.classification.models import ClassificationResult, ModelInfo, Strategy
from pii_agent.config.settings import Settings
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.factory import DetectorFactory
from pii_agent.logging.logger import Log
from pii_agent.persistence.base import MODE_KEY, STRATEGY_KEY, PreferenceStore
from pii_agent.persistence.factory import PreferenceStoreFactory
from pii_agent.revert.engine import RevertEngine
from pii_agent.surface.base import ChatSurface, ResponseObserver
from pii_agent.workflow.dispatch_guard import DispatchGuard
from pii_agent.workflow.exceptions import (
    AlreadyRunningError,
    DispatchFailedError,
    EmptyPromptError,
    InvalidTransitionError,
    NotSupportedHereError,
    WorkflowCancelledError,
    WorkflowError,
)
from pii_agent.workflow.models import Mode, Outcome, WorkflowReport, WorkflowRun
from pii_agent.workflow.response_waiter import ResponseWaiter
from pii_agent.workflow.states import Phase
from pii_agent.workflow.steps import (
    AwaitResponseStep,
    DispatchStep,
    RevertStep,
    ScanStep,
    SubstituteStep,
    WorkflowContext,
    WorkflowStep,
)


class AgentSession:
    """Owns the workflow lifecycle for one chat surface.

    Only one run may be active at a time. A second trigger fails fast with
    ``AlreadyRunningError`` instead of queueing. Every run ends back in
    IDLE; step failures come back as a report rather than an exception.
    """

    def __init__(
        self,
        surface: ChatSurface,
        observer: ResponseObserver,
        detector: BaseDetector,
        generator: BaseSubstituteGenerator,
        preferences: PreferenceStore,
        settings: Settings,
    ) -> None:
        self._surface = surface
        self._observer = observer
        self._detector = detector
        self._preferences = preferences
        self._clear_delay = settings.mapping_clear_delay_seconds
        self._guard = DispatchGuard(settings.dispatch_guard_seconds)
        waiter = ResponseWaiter(
            observer,
            timeout_seconds=settings.response_timeout_seconds,
            stability_checks=settings.stability_checks,
            stability_interval_seconds=settings.stability_interval_seconds,
        )
        engine = RevertEngine(
            max_attempts=settings.revert_max_attempts,
            interval_seconds=settings.revert_attempt_interval_seconds,
            stall_after_attempts=settings.revert_stall_after_attempts,
        )
        self._steps: list[WorkflowStep] = [
            ScanStep(detector),
            SubstituteStep(generator, surface),
            DispatchStep(surface, self._guard),
            AwaitResponseStep(waiter),
            RevertStep(engine, observer),
        ]
        self._mode = self._load_mode()
        self._strategy = self._load_strategy(settings.default_strategy)
        self._current: WorkflowRun | None = None
        self._cancel_event: asyncio.Event | None = None
        self._pending_clears: list[tuple[asyncio.TimerHandle, WorkflowRun]] = []
        self.last_run: WorkflowRun | None = None
        self.available_models: list[ModelInfo] = fallback_models()

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def running(self) -> bool:
        return self._current is not None

    @property
    def current_run(self) -> WorkflowRun | None:
        return self._current

    async def refresh_models(self) -> list[ModelInfo]:
        """Reload the selectable models from the detector backend."""
        self.available_models = await self._detector.available_models()
        Log.info(f"{len(self.available_models)} detection models available")
        return self.available_models

    def classify(self, text: str) -> ClassificationResult:
        return classify(text)

    def set_mode(self, mode: Mode | str) -> None:
        self._mode = Mode(mode)
        self._preferences.set(MODE_KEY, self._mode.value)
        Log.debug(f"Mode set to {self._mode.value}")

    def select_strategy(self, strategy: Strategy | str) -> None:
        self._strategy = Strategy.parse(strategy)
        self._preferences.set(STRATEGY_KEY, self._strategy.value)
        Log.info(f"Detection strategy set to {self._strategy.value}")

    def dispatch(self) -> bool:
        """Manual send path; shares the duplicate-submit guard with the workflow."""
        if self._guard.recently_dispatched():
            Log.info("Manual dispatch suppressed, a submit already happened moments ago")
            return False
        if not self._surface.submit():
            raise DispatchFailedError("No send affordance available on the surface")
        self._guard.mark()
        return True

    def cancel_workflow(self) -> bool:
        """Signal the active run to stop at its next transition."""
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        Log.info("Cancel requested")
        return True

    async def run_workflow(self) -> WorkflowReport:
        """Run scan -> substitute -> dispatch -> await -> revert once.

        Raises:
            NotSupportedHereError: the surface cannot be automated.
            AlreadyRunningError: another run is active.
            EmptyPromptError: the editable text is blank.
        """
        if not self._surface.supports_automation():
            raise NotSupportedHereError("This chat surface cannot be automated")
        if self._current is not None:
            raise AlreadyRunningError(f"Run {self._current.id} is still in progress")
        prompt = self._surface.get_editable_text()
        if not prompt.strip():
            raise EmptyPromptError("Please enter a prompt before running the agent")

        # The guard only dedupes submits within one run.
        self._guard.reset()
        run = WorkflowRun(
            id=uuid.uuid4().hex[:8],
            baseline_response_count=self._observer.count_responses(),
        )
        cancel_event = asyncio.Event()
        self._current = run
        self._cancel_event = cancel_event
        self.last_run = run
        context = WorkflowContext(
            run=run,
            prompt=prompt,
            selected_strategy=self._strategy,
            cancel_event=cancel_event,
        )
        try:
            with Log.run_context(run.id):
                self.set_mode(Mode.AGENT)
                Log.info(f"Workflow started, {run.baseline_response_count} existing responses")
                return await self._execute(context)
        finally:
            self._current = None
            self._cancel_event = None

    async def close(self) -> None:
        """Clear any mappings still awaiting deferred clearing and release the detector."""
        for handle, run in self._pending_clears:
            handle.cancel()
            run.mappings.clear()
        self._pending_clears.clear()
        await self._detector.aclose()

    async def _execute(self, context: WorkflowContext) -> WorkflowReport:
        run = context.run
        try:
            for step in self._steps:
                self._raise_if_cancelled(context)
                run.advance(step.phase)
                Log.info(f"Phase -> {step.phase.value}")
                context = await step.run(context)
            self._raise_if_cancelled(context)
            run.advance(Phase.IDLE)
        except InvalidTransitionError:
            self._unwind(context)
            raise
        except WorkflowError as exc:
            return self._fail(context, exc)
        except BaseException:
            Log.error(f"Workflow aborted in {run.phase.value}")
            self._unwind(context)
            raise

        report = self._success_report(context)
        self._schedule_clear(run)
        Log.info(
            f"Workflow finished: {report.outcome.value}, "
            f"{report.restored_count}/{report.total_mappings} restored"
        )
        return report

    def _fail(self, context: WorkflowContext, exc: WorkflowError) -> WorkflowReport:
        run = context.run
        phase_reached = run.furthest_phase
        total = len(run.mappings)
        # After send the substitutes may still surface later; hand them back.
        unresolved = run.mappings.filled() if run.sent else []
        if isinstance(exc, WorkflowCancelledError):
            outcome = Outcome.CANCELLED
        elif run.sent:
            outcome = Outcome.FAILED_AFTER_SEND
        else:
            outcome = Outcome.FAILED_BEFORE_SEND
        Log.error(f"Workflow failed in {run.phase.value}: {exc}")
        self._unwind(context)
        return WorkflowReport(
            restored_count=0,
            total_mappings=total,
            phase_reached=phase_reached,
            outcome=outcome,
            unresolved=unresolved,
            strategy=run.strategy,
            rationale=run.rationale,
            error=exc,
        )

    def _unwind(self, context: WorkflowContext) -> None:
        """Move the run through ERROR back to IDLE and drop its mappings."""
        run = context.run
        if run.phase is not Phase.IDLE:
            if run.phase is not Phase.ERROR:
                run.advance(Phase.ERROR)
            run.advance(Phase.IDLE)
        if context.outbound_text and not run.sent:
            self._surface.set_editable_text(context.prompt)
        dropped = run.mappings.clear()
        Log.debug(f"Cleared {dropped} mappings")

    def _success_report(self, context: WorkflowContext) -> WorkflowReport:
        run = context.run
        revert_report = context.revert_report
        if revert_report is None:
            raise RuntimeError("Revert step did not produce a report")
        if context.view is not None:
            restored_text = "".join(s.text for s in context.view.response_segments())
        else:
            restored_text = context.response_text
        outcome = (
            Outcome.FULLY_RESTORED
            if revert_report.fully_restored
            else Outcome.PARTIALLY_RESTORED
        )
        return WorkflowReport(
            restored_count=revert_report.restored_count,
            total_mappings=len(run.mappings),
            phase_reached=run.furthest_phase,
            outcome=outcome,
            unresolved=list(revert_report.unresolved),
            strategy=run.strategy,
            rationale=run.rationale,
            attempts=list(revert_report.attempts),
            restored_text=restored_text,
        )

    def _schedule_clear(self, run: WorkflowRun) -> None:
        loop = asyncio.get_running_loop()
        handle = loop.call_later(self._clear_delay, self._clear_mappings, run)
        self._pending_clears.append((handle, run))

    def _clear_mappings(self, run: WorkflowRun) -> None:
        dropped = run.mappings.clear()
        self._pending_clears = [item for item in self._pending_clears if item[1] is not run]
        Log.debug(f"Deferred clear dropped {dropped} mappings of run {run.id}")

    def _raise_if_cancelled(self, context: WorkflowContext) -> None:
        if context.cancel_event.is_set():
            raise WorkflowCancelledError(
                f"Run cancelled before leaving {context.run.phase.value}"
            )

    def _load_mode(self) -> Mode:
        stored = self._preferences.get(MODE_KEY, Mode.CONTROL.value)
        try:
            return Mode(stored)
        except ValueError:
            Log.warning(f"Ignoring unknown stored mode '{stored}'")
            return Mode.CONTROL

    def _load_strategy(self, default: str) -> Strategy:
        stored = self._preferences.get(STRATEGY_KEY, default)
        try:
            return Strategy.parse(stored)
        except ValueError:
            Log.warning(f"Ignoring unknown stored strategy '{stored}'")
            return Strategy.AUTO


def build_session(
    settings: Settings,
    surface: ChatSurface,
    observer: ResponseObserver,
    preferences: PreferenceStore | None = None,
) -> AgentSession:
    """Build an AgentSession with the configured detector, generator and preference store."""
    if preferences is None:
        preferences = PreferenceStoreFactory.create(settings)
    return AgentSession(
        surface=surface,
        observer=observer,
        detector=DetectorFactory.create(settings),
        generator=SubstituteGeneratorFactory.create(settings),
        preferences=preferences,
        settings=settings,
    )
