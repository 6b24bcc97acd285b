from collections.abc import Callable
from typing import ClassVar

from faker import Faker

from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.anonymization.exceptions import SubstitutionError
from pii_agent.logging.logger import Log
from pii_agent.mapping.models import EntityType


class FakerSubstituteGenerator(BaseSubstituteGenerator):
    """Generates type-preserving synthetic values with Faker."""

    MAX_ATTEMPTS: ClassVar[int] = 10

    def __init__(self, locale: str = "en_US", seed: int | None = None) -> None:
        self._faker = Faker(locale)
        if seed is not None:
            self._faker.seed_instance(seed)
        self._providers: dict[EntityType, Callable[[], str]] = {
            EntityType.PERSON: self._person,
            EntityType.LOCATION: self._location,
            EntityType.EMAIL: self._email,
            EntityType.PHONE: self._phone,
            EntityType.ORGANIZATION: self._organization,
            EntityType.OTHER: self._token,
        }

    def generate(self, entity_type: EntityType, original: str) -> str:
        provider = self._providers.get(entity_type, self._token)
        try:
            for _ in range(self.MAX_ATTEMPTS):
                candidate = provider().strip()
                if candidate and candidate.casefold() != original.strip().casefold():
                    return candidate
        except Exception as exc:
            raise SubstitutionError(f"Faker failed for {entity_type.value}: {exc}") from exc

        Log.warning(
            f"Faker kept colliding with the original {entity_type.value} value, "
            "falling back to a suffixed token"
        )
        return f"{self._token()}-{self._faker.random_int(100, 999)}"

    def _person(self) -> str:
        return f"{self._faker.first_name()} {self._faker.last_name()}"

    def _location(self) -> str:
        return (
            f"{self._faker.building_number()} {self._faker.street_name()}, "
            f"{self._faker.city()}"
        )

    def _email(self) -> str:
        return self._faker.safe_email()

    def _phone(self) -> str:
        return self._faker.numerify("+1-###-###-####")

    def _organization(self) -> str:
        return self._faker.company()

    def _token(self) -> str:
        return f"{self._faker.first_name()}{self._faker.random_int(0, 8999)}"
