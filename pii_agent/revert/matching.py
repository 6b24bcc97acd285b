"""Locating substitutes in rendered text and putting originals back.

Substitute values are never interpreted as regular expressions. A rewrite
collects the matches of every entity against the same input text and
applies them in one go, so a restored original is never scanned again for
other substitutes. Occurrences that lie inside an occurrence of any mapped
original value are left alone, which keeps every rewrite idempotent even
when a substitute is a substring of an original.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pii_agent.mapping.models import Entity, EntityType
from pii_agent.revert.models import RevertResult

_COMPONENT_SPLIT_RE = re.compile(r"[,\s/]+")
_NON_DIGIT_RE = re.compile(r"\D")
_PHONE_SEPARATORS = r"[\s\-.()]*"
MIN_COMPONENT_LENGTH = 4
MIN_ALIGNMENT_LENGTH = 3
MIN_PHONE_DIGITS = 10
ADDRESS_WORDS = frozenset(
    {
        "Ave", "Avenue", "St", "Street", "Rd", "Road", "Blvd", "Boulevard",
        "Ln", "Lane", "Dr", "Drive", "Ct", "Court", "Pl", "Place", "Way", "in", "at",
    }
)

Range = tuple[int, int]


@dataclass(frozen=True)
class _Match:
    start: int
    end: int
    replacement: str
    entity_id: str


def split_parts(value: str, min_length: int) -> list[str]:
    return [part for part in _COMPONENT_SPLIT_RE.split(value) if len(part) >= min_length]


def location_components(entity: Entity) -> list[str]:
    """Substitute tokens longer than three characters that the original lacks."""
    if not entity.substitute:
        return []
    original_tokens = {part.casefold() for part in split_parts(entity.original, 1)}
    return [
        part
        for part in split_parts(entity.substitute, MIN_COMPONENT_LENGTH)
        if part.casefold() not in original_tokens
    ]


def find_occurrences(
    text: str,
    needle: str,
    *,
    ignore_case: bool = False,
    whole_word: bool = False,
) -> list[Range]:
    """Non-overlapping ``(start, end)`` ranges of *needle* in *text*."""
    if not needle:
        return []
    if not ignore_case and not whole_word:
        ranges: list[Range] = []
        start = 0
        while True:
            idx = text.find(needle, start)
            if idx == -1:
                return ranges
            ranges.append((idx, idx + len(needle)))
            start = idx + len(needle)

    pattern = re.escape(needle)
    if whole_word:
        pattern = rf"(?<!\w){pattern}(?!\w)"
    flags = re.IGNORECASE if ignore_case else 0
    return [(m.start(), m.end()) for m in re.finditer(pattern, text, flags)]


def _protected_ranges(text: str, values: Iterable[str]) -> list[Range]:
    ranges: list[Range] = []
    for value in set(values):
        ranges.extend(find_occurrences(text, value, ignore_case=True))
    return ranges


def _is_protected(start: int, end: int, protected: list[Range]) -> bool:
    return any(p_start <= start and end <= p_end for p_start, p_end in protected)


def _apply(text: str, matches: list[_Match]) -> str:
    pieces: list[str] = []
    cursor = 0
    for match in sorted(matches, key=lambda m: m.start):
        pieces.append(text[cursor:match.start])
        pieces.append(match.replacement)
        cursor = match.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def replace_literal(
    text: str,
    needle: str,
    replacement: str,
    *,
    protected_value: str = "",
    ignore_case: bool = False,
    whole_word: bool = False,
) -> tuple[str, int]:
    """Replace every occurrence of *needle*; return the new text and the count."""
    protected = _protected_ranges(text, [protected_value] if protected_value else [])
    matches = [
        _Match(start, end, replacement, "")
        for start, end in find_occurrences(
            text, needle, ignore_case=ignore_case, whole_word=whole_word
        )
        if not _is_protected(start, end, protected)
    ]
    if not matches:
        return text, 0
    return _apply(text, matches), len(matches)


def is_detectable(entity: Entity, text: str, protected_values: Iterable[str] = ()) -> bool:
    """Whether the entity's substitute can still be found in *text*.

    Locations count as present when any component token appears
    case-insensitively; everything else needs the exact substitute.
    Occurrences inside the entity's original, or inside any of
    *protected_values*, do not count.
    """
    if not entity.substitute:
        return False
    protected = _protected_ranges(text, [entity.original, *protected_values])
    if entity.type is EntityType.LOCATION:
        candidates = [
            found
            for component in location_components(entity)
            for found in find_occurrences(text, component, ignore_case=True, whole_word=True)
        ]
    else:
        candidates = find_occurrences(text, entity.substitute)
    return any(not _is_protected(start, end, protected) for start, end in candidates)


def component_replacement(entity: Entity, component: str) -> str:
    """Original counterpart for one substitute component.

    Components are aligned from the end, so the trailing city of a
    substitute maps to the trailing city of the original. Without a
    counterpart the whole original value is used.
    """
    fake_parts = split_parts(entity.substitute or "", MIN_ALIGNMENT_LENGTH)
    original_parts = split_parts(entity.original, MIN_ALIGNMENT_LENGTH)
    lowered = [part.casefold() for part in fake_parts]
    if component.casefold() not in lowered:
        return entity.original
    offset = len(fake_parts) - lowered.index(component.casefold())
    index = len(original_parts) - offset
    if 0 <= index < len(original_parts):
        return original_parts[index]
    return entity.original


def _flexible_pattern(value: str) -> re.Pattern[str]:
    body = r"\s+".join(re.escape(word) for word in value.split())
    return re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)


def _without_address_words(value: str) -> str:
    kept: list[str] = []
    for token in value.split():
        core = token.rstrip(",.")
        if core in ADDRESS_WORDS:
            suffix = token[len(core):]
            if kept and suffix:
                kept[-1] += suffix
            continue
        kept.append(token)
    return " ".join(kept)


def reformatted_patterns(entity: Entity) -> list[re.Pattern[str]]:
    """Patterns for a substitute the chat may have reformatted.

    Every substitute is matched with flexible whitespace and case. Phone
    numbers also match digit by digit across separators, and locations
    also match with street words such as "Ave" dropped.
    """
    substitute = entity.substitute or ""
    if not substitute.strip():
        return []
    patterns = [_flexible_pattern(substitute)]
    if entity.type is EntityType.PHONE:
        digits = _NON_DIGIT_RE.sub("", substitute)
        if len(digits) >= MIN_PHONE_DIGITS:
            body = _PHONE_SEPARATORS.join(digits)
            patterns.append(re.compile(rf"(?<![\d+])\+?{body}(?!\d)"))
    elif entity.type is EntityType.LOCATION:
        stripped = _without_address_words(substitute)
        if stripped != " ".join(substitute.split()) and len(stripped) > 3:
            patterns.append(_flexible_pattern(stripped))
    return patterns


def order_for_revert(entities: Iterable[Entity]) -> list[Entity]:
    """Filled entities, longest substitute first so shorter ones never split longer ones."""
    filled = [entity for entity in entities if entity.substitute]
    return sorted(filled, key=lambda e: len(e.substitute or ""), reverse=True)


def _candidates(text: str, entities: list[Entity], aggressive: bool) -> Iterator[_Match]:
    """Matches in priority order: exact, reformatted, then location components."""
    for entity in entities:
        for start, end in find_occurrences(text, entity.substitute or ""):
            yield _Match(start, end, entity.original, entity.id)
    for entity in entities:
        for pattern in reformatted_patterns(entity):
            for found in pattern.finditer(text):
                yield _Match(found.start(), found.end(), entity.original, entity.id)
    if not aggressive:
        return
    for entity in entities:
        if entity.type is not EntityType.LOCATION:
            continue
        for component in location_components(entity):
            replacement = component_replacement(entity, component)
            for start, end in find_occurrences(text, component, ignore_case=True, whole_word=True):
                yield _Match(start, end, replacement, entity.id)


def rewrite(
    text: str,
    entities: Iterable[Entity],
    *,
    aggressive: bool = True,
) -> tuple[str, set[str]]:
    """Restore originals in one pass; return the new text and touched entity ids.

    Matches are claimed in priority order and a claimed range is never
    matched again, so replacements cannot cascade into each other.
    """
    ordered = order_for_revert(entities)
    if not ordered or not text:
        return text, set()
    protected = _protected_ranges(text, (entity.original for entity in ordered))
    accepted: list[_Match] = []
    for match in _candidates(text, ordered, aggressive):
        if match.start == match.end or _is_protected(match.start, match.end, protected):
            continue
        if any(match.start < taken.end and taken.start < match.end for taken in accepted):
            continue
        accepted.append(match)
    if not accepted:
        return text, set()
    return _apply(text, accepted), {match.entity_id for match in accepted}


def still_detectable(text: str, entities: Iterable[Entity]) -> list[Entity]:
    """Filled entities whose substitute can still be found in *text*."""
    filled = order_for_revert(entities)
    originals = [entity.original for entity in filled]
    return [entity for entity in filled if is_detectable(entity, text, originals)]


def revert(text: str, entities: Iterable[Entity]) -> RevertResult:
    """Restore originals in *text*. Never raises; safe to reapply.

    ``restored_count`` counts entities changed by this call and no longer
    detectable, so a second call on already-reverted text reports zero.
    """
    filled = order_for_revert(entities)
    text, touched = rewrite(text, filled)
    unresolved = still_detectable(text, filled)
    unresolved_ids = {entity.id for entity in unresolved}
    return RevertResult(
        text=text,
        restored_count=len(touched - unresolved_ids),
        unresolved=unresolved,
    )
