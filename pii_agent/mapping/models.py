import uuid
from dataclasses import dataclass
from enum import Enum


class EntityType(str, Enum):
    PERSON = "PERSON"
    LOCATION = "LOCATION"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    ORGANIZATION = "ORGANIZATION"
    OTHER = "OTHER"

    @classmethod
    def from_label(cls, label: str | None) -> "EntityType":
        """Map a detector label (e.g. ``PHONE_NUMBER``, ``[NAME]``) to a type."""
        if not label:
            return cls.OTHER
        key = label.strip().strip("[]").upper().replace("-", "_").replace(" ", "_")
        value = _LABEL_ALIASES.get(key, key)
        return cls(value) if value in _MEMBERS else cls.OTHER


_LABEL_ALIASES: dict[str, str] = {
    "NAME": "PERSON",
    "PER": "PERSON",
    "PERSON_NAME": "PERSON",
    "REDACTED": "PERSON",
    "LOC": "LOCATION",
    "GPE": "LOCATION",
    "ADDRESS": "LOCATION",
    "STREET_ADDRESS": "LOCATION",
    "CITY": "LOCATION",
    "EMAIL_ADDRESS": "EMAIL",
    "PHONE_NUMBER": "PHONE",
    "TELEPHONE": "PHONE",
    "ORG": "ORGANIZATION",
    "COMPANY": "ORGANIZATION",
}
_MEMBERS: frozenset[str] = frozenset(member.value for member in EntityType)


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` in the source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span ({self.start}, {self.end})")

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and self.end > other.start

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class Entity:
    """One detected span of sensitive text and its substitute, once chosen."""

    id: str
    type: EntityType
    original: str
    span: Span
    substitute: str | None = None

    def __post_init__(self) -> None:
        if not self.original:
            raise ValueError("Entity.original must be non-empty")

    @property
    def is_filled(self) -> bool:
        return bool(self.substitute)


def new_entity_id() -> str:
    return f"pii_{uuid.uuid4().hex[:16]}"
