import pytest

from pii_agent.classification.catalog import fallback_models
from pii_agent.classification.models import Strategy
from pii_agent.detection.example_detector import ExampleDetector
from pii_agent.mapping.models import EntityType


class TestExampleDetector:
    @pytest.mark.asyncio
    async def test_detects_email_and_phone(self) -> None:
        text = "Write to jane.doe@corp.io or call +1 415 555 0100."
        entities = await ExampleDetector().detect(text, Strategy.AUTO)
        found = {(e.type, e.original) for e in entities}
        assert (EntityType.EMAIL, "jane.doe@corp.io") in found
        assert (EntityType.PHONE, "+1 415 555 0100") in found

    @pytest.mark.asyncio
    async def test_detects_person_after_lead_in(self) -> None:
        text = "Hello, my name is John Smith and I need help."
        entities = await ExampleDetector().detect(text, Strategy.AUTO)
        person = next(e for e in entities if e.type is EntityType.PERSON)
        assert person.original == "John Smith"
        assert text[person.span.start : person.span.end] == "John Smith"

    @pytest.mark.asyncio
    async def test_detects_street_address(self) -> None:
        text = "Ship it to 123 Main St, Springfield please"
        entities = await ExampleDetector().detect(text, Strategy.LOCATION_SPECIALIST)
        location = next(e for e in entities if e.type is EntityType.LOCATION)
        assert location.original == "123 Main St, Springfield"

    @pytest.mark.asyncio
    async def test_results_are_sorted_by_start(self) -> None:
        text = "Dr. Jane Doe, jane@doe.org"
        entities = await ExampleDetector().detect(text, Strategy.AUTO)
        starts = [e.span.start for e in entities]
        assert starts == sorted(starts)

    @pytest.mark.asyncio
    async def test_clean_text_yields_nothing(self) -> None:
        assert await ExampleDetector().detect("what is the weather like", Strategy.AUTO) == []

    @pytest.mark.asyncio
    async def test_is_always_healthy(self) -> None:
        assert (await ExampleDetector().health()).healthy

    @pytest.mark.asyncio
    async def test_offers_the_built_in_catalog(self) -> None:
        assert await ExampleDetector().available_models() == fallback_models()
