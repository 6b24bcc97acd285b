from pii_agent.config.settings import Settings
from pii_agent.database.repositories.preferences_repository import PreferencesRepository
from pii_agent.persistence.base import PreferenceStore
from pii_agent.persistence.memory_store import InMemoryPreferenceStore


class PreferenceStoreFactory:
    """Creates the configured preference store."""

    SUPPORTED_BACKENDS = ("memory", "postgres")

    @classmethod
    def create(cls, settings: Settings) -> PreferenceStore:
        """Create a preference store from application settings.

        The ``postgres`` backend expects ``init_pool()`` to have been called.
        """
        backend = settings.preferences_backend.strip().lower()
        if backend == "memory":
            return InMemoryPreferenceStore()
        if backend == "postgres":
            repository = PreferencesRepository()
            repository.ensure_schema()
            return repository
        raise ValueError(
            f"Unknown preferences backend '{backend}'. "
            f"Choose from: {list(cls.SUPPORTED_BACKENDS)}"
        )

    @staticmethod
    def uses_database(settings: Settings) -> bool:
        return settings.preferences_backend.strip().lower() == "postgres"
