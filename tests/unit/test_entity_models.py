import pytest

from pii_agent.mapping.models import Entity, EntityType, Span, new_entity_id


class TestEntityTypeFromLabel:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("PERSON", EntityType.PERSON),
            ("[NAME]", EntityType.PERSON),
            ("per", EntityType.PERSON),
            ("GPE", EntityType.LOCATION),
            ("street-address", EntityType.LOCATION),
            ("EMAIL_ADDRESS", EntityType.EMAIL),
            ("phone number", EntityType.PHONE),
            ("ORG", EntityType.ORGANIZATION),
        ],
    )
    def test_maps_detector_labels(self, label: str, expected: EntityType) -> None:
        assert EntityType.from_label(label) is expected

    def test_unknown_label_is_other(self) -> None:
        assert EntityType.from_label("CREDIT_CARD") is EntityType.OTHER

    def test_missing_label_is_other(self) -> None:
        assert EntityType.from_label(None) is EntityType.OTHER
        assert EntityType.from_label("") is EntityType.OTHER


class TestSpan:
    def test_length(self) -> None:
        assert len(Span(3, 8)) == 5

    def test_overlap(self) -> None:
        assert Span(0, 5).overlaps(Span(4, 6))
        assert not Span(0, 5).overlaps(Span(5, 6))

    def test_rejects_negative_start(self) -> None:
        with pytest.raises(ValueError):
            Span(-1, 2)

    def test_rejects_end_before_start(self) -> None:
        with pytest.raises(ValueError):
            Span(5, 2)


class TestEntity:
    def test_rejects_empty_original(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            Entity(id="e1", type=EntityType.PERSON, original="", span=Span(0, 0))

    def test_is_filled(self) -> None:
        entity = Entity(id="e1", type=EntityType.PERSON, original="Ann", span=Span(0, 3))
        assert not entity.is_filled
        entity.substitute = "Bea"
        assert entity.is_filled


class TestNewEntityId:
    def test_ids_are_prefixed_and_unique(self) -> None:
        ids = {new_entity_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(i.startswith("pii_") for i in ids)
