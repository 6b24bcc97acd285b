from dataclasses import dataclass
from enum import Enum


class Strategy(str, Enum):
    """Detection strategy; values are the detector backend's model keys."""

    LOCATION_SPECIALIST = "nemo"
    NUMERIC_SPECIALIST = "ai4privacy"
    CITY_SPECIALIST = "piranha"
    BROAD_WESTERN_SPECIALIST = "bdmbz"
    GENERAL_PURPOSE = "presidio"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: "str | Strategy") -> "Strategy":
        """Accept either a member, its model key, or its member name."""
        if isinstance(value, Strategy):
            return value
        key = value.strip()
        for member in cls:
            if key == member.value or key.upper() == member.name:
                return member
        raise ValueError(f"Unknown strategy '{value}'")


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of the rule-based classifier."""

    strategy: Strategy
    rationale: str
    signal: str | None = None  # name of the signal that fired, None for defaults


@dataclass(frozen=True)
class ModelInfo:
    """A detection model advertised by the backend."""

    key: str
    name: str
    description: str = ""
    accuracy: str = ""
