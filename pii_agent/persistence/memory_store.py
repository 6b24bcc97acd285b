from pii_agent.persistence.base import PreferenceStore


class InMemoryPreferenceStore(PreferenceStore):
    """Process-local preference store; forgets everything on exit."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
