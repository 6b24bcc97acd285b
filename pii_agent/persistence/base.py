from abc import ABC, abstractmethod

MODE_KEY = "pii-extension-mode"
STRATEGY_KEY = "piiModelKey"


class PreferenceStore(ABC):
    """Key-value store for user preferences such as mode and selected model."""

    @abstractmethod
    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the stored value for *key*, or *default* when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
