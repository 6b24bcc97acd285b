from dataclasses import dataclass, field
from enum import Enum

from pii_agent.mapping.models import Entity


class RevertScope(str, Enum):
    RESPONSE = "response"  # known response containers only
    DOCUMENT = "document"  # every rendered segment


@dataclass
class RevertResult:
    """Output of a single pure revert pass over one text."""

    text: str
    restored_count: int
    unresolved: list[Entity] = field(default_factory=list)


@dataclass(frozen=True)
class RevertAttempt:
    """Observable record of one engine attempt."""

    number: int
    scope: RevertScope
    aggressive: bool
    replacements: int
    resolved_count: int


@dataclass
class RevertReport:
    """Best-effort outcome of the escalating revert engine."""

    restored_count: int
    unresolved: list[Entity] = field(default_factory=list)
    attempts: list[RevertAttempt] = field(default_factory=list)

    @property
    def fully_restored(self) -> bool:
        return not self.unresolved
