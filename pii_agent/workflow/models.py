from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pii_agent.classification.models import Strategy
from pii_agent.mapping.models import Entity
from pii_agent.mapping.store import MappingStore
from pii_agent.revert.models import RevertAttempt
from pii_agent.workflow.exceptions import WorkflowError
from pii_agent.workflow.states import SENT_PHASES, Phase, check_transition


class Mode(str, Enum):
    CONTROL = "control"  # user triggers each step by hand
    AGENT = "agent"  # the workflow drives the surface end to end


class Outcome(str, Enum):
    FULLY_RESTORED = "fully_restored"
    PARTIALLY_RESTORED = "partially_restored"
    FAILED_BEFORE_SEND = "failed_before_send"
    FAILED_AFTER_SEND = "failed_after_send"
    CANCELLED = "cancelled"


@dataclass
class WorkflowRun:
    """One end-to-end execution. Owns its mapping store exclusively."""

    id: str
    mappings: MappingStore = field(default_factory=MappingStore)
    baseline_response_count: int = 0
    phase: Phase = Phase.IDLE
    furthest_phase: Phase = Phase.IDLE
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    strategy: Strategy | None = None
    rationale: str = ""

    def advance(self, target: Phase) -> None:
        check_transition(self.phase, target)
        self.phase = target
        if target not in (Phase.IDLE, Phase.ERROR):
            self.furthest_phase = target

    @property
    def sent(self) -> bool:
        return self.furthest_phase in SENT_PHASES


@dataclass
class WorkflowReport:
    """Terminal report handed back to the caller of a run."""

    restored_count: int
    total_mappings: int
    phase_reached: Phase
    outcome: Outcome
    unresolved: list[Entity] = field(default_factory=list)
    strategy: Strategy | None = None
    rationale: str = ""
    error: WorkflowError | None = None
    attempts: list[RevertAttempt] = field(default_factory=list)
    restored_text: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error is None
