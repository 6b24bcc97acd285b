from abc import ABC, abstractmethod

from pii_agent.mapping.models import EntityType


class BaseSubstituteGenerator(ABC):
    """Contract for all substitute (fake value) generators."""

    @abstractmethod
    def generate(self, entity_type: EntityType, original: str) -> str:
        """Produce a synthetic replacement for *original*.

        Args:
            entity_type: Semantic type the substitute must share with the original.
            original: The sensitive value being replaced.

        Returns:
            A non-empty value of the same type, never equal to *original*.

        Raises:
            SubstitutionError: on any failure.
        """
