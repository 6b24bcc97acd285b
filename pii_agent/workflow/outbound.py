"""Turning detections into mapped entities and the outbound prompt.

Shared by the workflow steps and the command-line preview so both apply
the same filtering and the same substitute collision rules.
"""

from collections.abc import Iterable

from pii_agent.anonymization.base import BaseSubstituteGenerator
from pii_agent.anonymization.models import SubstitutionResult
from pii_agent.anonymization.substitution import (
    apply_substitutions,
    filter_redacted,
    remove_overlapping_spans,
)
from pii_agent.detection.models import DetectedEntity
from pii_agent.logging.logger import Log
from pii_agent.mapping.models import Entity, new_entity_id
from pii_agent.mapping.store import MappingStore

MAX_COLLISION_RETRIES = 5


def collect_entities(detected: Iterable[DetectedEntity], text: str) -> list[Entity]:
    """Entities worth substituting, in ascending span order."""
    entities = (
        Entity(id=new_entity_id(), type=item.type, original=item.original, span=item.span)
        for item in detected
        if item.original
    )
    return remove_overlapping_spans(filter_redacted(entities, text))


def _collides(substitute: str, original: str, originals: set[str]) -> bool:
    folded = substitute.casefold()
    own = original.casefold()
    if folded == own:
        return True
    return any(folded in other for other in originals if other != own)


def generate_substitute(
    generator: BaseSubstituteGenerator,
    entity: Entity,
    originals: set[str],
) -> str:
    """A substitute that neither equals nor hides inside another original.

    *originals* holds the casefolded originals of every mapped entity.
    """
    substitute = generator.generate(entity.type, entity.original)
    for _ in range(MAX_COLLISION_RETRIES):
        if not _collides(substitute, entity.original, originals):
            break
        Log.debug(f"Substitute for {entity.id} collides with another original, retrying")
        substitute = generator.generate(entity.type, entity.original)
    return substitute


def fill_substitutes(store: MappingStore, generator: BaseSubstituteGenerator) -> list[Entity]:
    """Give every unfilled entity a substitute, reusing one per (original, type)."""
    entities = store.all()
    originals = {entity.original.casefold() for entity in entities}
    for entity in entities:
        if entity.is_filled:
            continue
        substitute = store.substitute_for(entity.original, entity.type)
        if substitute is None:
            substitute = generate_substitute(generator, entity, originals)
        store.assign_substitute(entity.id, substitute)
    return entities


def prepare_outbound(
    text: str,
    detected: Iterable[DetectedEntity],
    store: MappingStore,
    generator: BaseSubstituteGenerator,
) -> SubstitutionResult:
    """Map *detected* into *store* and rewrite *text* with the substitutes."""
    for entity in collect_entities(detected, text):
        store.put(entity)
    return apply_substitutions(text, fill_substitutes(store, generator))
