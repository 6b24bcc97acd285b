from enum import Enum

from pii_agent.workflow.exceptions import InvalidTransitionError


class Phase(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SUBSTITUTING = "substituting"
    DISPATCHING = "dispatching"
    AWAITING_RESPONSE = "awaiting_response"
    REVERTING = "reverting"
    ERROR = "error"


ALLOWED_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.IDLE: frozenset({Phase.SCANNING}),
    Phase.SCANNING: frozenset({Phase.SUBSTITUTING, Phase.ERROR}),
    Phase.SUBSTITUTING: frozenset({Phase.DISPATCHING, Phase.ERROR}),
    Phase.DISPATCHING: frozenset({Phase.AWAITING_RESPONSE, Phase.ERROR}),
    Phase.AWAITING_RESPONSE: frozenset({Phase.REVERTING, Phase.ERROR}),
    Phase.REVERTING: frozenset({Phase.IDLE, Phase.ERROR}),
    Phase.ERROR: frozenset({Phase.IDLE}),
}

# Phases reached only after the substituted prompt left the surface.
SENT_PHASES: frozenset[Phase] = frozenset({Phase.AWAITING_RESPONSE, Phase.REVERTING})


def check_transition(current: Phase, target: Phase) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move from {current.value} to {target.value}"
        )
