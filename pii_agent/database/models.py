from dataclasses import dataclass
from datetime import datetime


@dataclass
class PreferenceRecord:
    """Represents a row from the agent_preferences table."""

    key: str
    value: str
    updated_at: datetime | None = None
