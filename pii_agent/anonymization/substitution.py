"""Span bookkeeping for rewriting outbound text with substitutes.

Processing flow:
1. Drop detections that overlap redaction labels already in the text, such
   as "[NAME]", then drop overlapping detections (first-starting, then
   longest, wins).
2. Resolve every entity's span against the text it will be applied to,
   relocating spans whose offsets went stale.
3. Replace spans in descending start order so earlier replacements never
   shift the offsets of spans still to be processed.
"""

from collections.abc import Iterable

from pii_agent.anonymization.exceptions import SubstitutionError
from pii_agent.anonymization.models import SubstitutionResult
from pii_agent.logging.logger import Log
from pii_agent.mapping.models import Entity, Span

REDACTION_LABELS: tuple[str, ...] = (
    "[NAME]",
    "[LOCATION]",
    "[EMAIL]",
    "[PHONE]",
    "[ORGANIZATION]",
    "[REDACTED]",
    "[ID]",
    "[BANK_ACCOUNT]",
    "[SSN]",
    "[URL]",
    "[DATE_TIME]",
)


def filter_redacted(entities: Iterable[Entity], text: str) -> list[Entity]:
    """Drop entities that overlap, or consist of, a redaction label in *text*."""
    label_spans = [
        Span(idx, idx + len(label))
        for label in REDACTION_LABELS
        for idx in _occurrences(text, label)
    ]
    kept: list[Entity] = []
    for entity in entities:
        if any(entity.span.overlaps(span) for span in label_spans) or any(
            label in entity.original for label in REDACTION_LABELS
        ):
            Log.debug(
                f"Dropped {entity.type.value} at {entity.span.start}-{entity.span.end}, "
                "overlaps a redaction label"
            )
            continue
        kept.append(entity)
    return kept


def remove_overlapping_spans(entities: Iterable[Entity]) -> list[Entity]:
    """Keep a non-overlapping subset, returned in ascending start order."""
    ordered = sorted(entities, key=lambda e: (e.span.start, -len(e.span)))
    kept: list[Entity] = []
    for entity in ordered:
        clash = next((k for k in kept if k.span.overlaps(entity.span)), None)
        if clash is None:
            kept.append(entity)
        else:
            Log.debug(
                f"Dropped overlapping {entity.type.value} at {entity.span.start}-"
                f"{entity.span.end}, overlaps {clash.type.value} at "
                f"{clash.span.start}-{clash.span.end}"
            )
    return kept


def apply_substitutions(text: str, entities: Iterable[Entity]) -> SubstitutionResult:
    """Rewrite *text*, replacing each entity's original span with its substitute.

    Raises:
        SubstitutionError: an entity has no substitute, or its original value
            cannot be located in *text*.
    """
    resolved: list[tuple[Span, Entity]] = []
    for entity in entities:
        if not entity.substitute:
            raise SubstitutionError(f"Entity '{entity.id}' has no substitute")
        span = _resolve_span(text, entity, [s for s, _ in resolved])
        resolved.append((span, entity))

    result = text
    for span, entity in sorted(resolved, key=lambda item: item[0].start, reverse=True):
        result = result[: span.start] + entity.substitute + result[span.end :]

    applied = [entity for _, entity in sorted(resolved, key=lambda item: item[0].start)]
    return SubstitutionResult(text=result, applied=applied)


def _resolve_span(text: str, entity: Entity, taken: list[Span]) -> Span:
    span = entity.span
    if text[span.start : span.end] == entity.original and not _clashes(span, taken):
        return span

    candidates = [
        Span(idx, idx + len(entity.original))
        for idx in _occurrences(text, entity.original)
    ]
    free = [c for c in candidates if not _clashes(c, taken)]
    if not free:
        raise SubstitutionError(
            f"{entity.type.value} entity '{entity.id}' not found in outbound text"
        )
    best = min(free, key=lambda c: abs(c.start - span.start))
    Log.debug(f"Relocated entity '{entity.id}' from {span.start} to {best.start}")
    return best


def _clashes(span: Span, taken: list[Span]) -> bool:
    return any(span.overlaps(other) for other in taken)


def _occurrences(text: str, needle: str) -> list[int]:
    positions: list[int] = []
    start = 0
    while True:
        idx = text.find(needle, start)
        if idx == -1:
            return positions
        positions.append(idx)
        start = idx + 1
