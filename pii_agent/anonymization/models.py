from dataclasses import dataclass, field

from pii_agent.mapping.models import Entity


@dataclass
class SubstitutionResult:
    """Output of the substitution step."""

    text: str
    applied: list[Entity] = field(default_factory=list)
