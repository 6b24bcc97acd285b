from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.anonymization.faker_generator import FakerSubstituteGenerator
from pii_agent.config.settings import Settings


class SubstituteGeneratorFactory:
    """Creates the configured substitute generator."""

    @classmethod
    def create(cls, settings: Settings) -> BaseSubstituteGenerator:
        """Create a Faker-backed generator using the configured locale and seed."""
        return FakerSubstituteGenerator(
            locale=settings.faker_locale,
            seed=settings.faker_seed,
        )
