"""Offline regex detector.

Use this module as a reference when implementing new detector adapters,
and for local development without a detection backend. Implement
BaseDetector and register the provider in DetectorFactory.
"""

import re
from typing import ClassVar

from pii_agent.classification.models import Strategy
from pii_agent.detection.base import BaseDetector
from pii_agent.detection.models import DetectedEntity
from pii_agent.logging.logger import Log
from pii_agent.mapping.models import EntityType, Span


class ExampleDetector(BaseDetector):
    """Pattern-based detector; the strategy is accepted but not used."""

    _EMAIL_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"[\w.\-+]+@[\w.\-]+\.\w{2,}",
    )
    _PHONE_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"(?<!\w)"
        r"\+?\d[\d\s\-().]{5,18}\d"
        r"(?!\w)",
    )
    _ADDRESS_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b\d{1,5}[A-Z]?\s+(?:[A-Z][a-z]+\s+){1,3}"
        r"(?:Street|St|Avenue|Ave|Road|Rd|Lane|Ln|Drive|Dr|Boulevard|Blvd|Way|Court|Ct)\b\.?"
        r"(?:,\s*[A-Z][a-z]+(?:\s[A-Z][a-z]+)?)?",
    )
    # Group 1 holds the name; the lead-in phrase stays in the text.
    _PERSON_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"(?:\b(?:Mr|Mrs|Ms|Dr|Prof)\.?\s+|\b[Mm]y name is\s+|\bI am\s+|\bI'm\s+)"
        r"([A-Z][a-z]+(?:\s[A-Z][a-z]+)?)",
    )

    _RULES: ClassVar[list[tuple[EntityType, re.Pattern[str], int]]] = [
        (EntityType.EMAIL, _EMAIL_RE, 0),
        (EntityType.LOCATION, _ADDRESS_RE, 0),
        (EntityType.PHONE, _PHONE_RE, 0),
        (EntityType.PERSON, _PERSON_RE, 1),
    ]

    async def detect(self, text: str, strategy: Strategy) -> list[DetectedEntity]:
        _ = strategy
        entities: list[DetectedEntity] = []
        for entity_type, pattern, group in self._RULES:
            for match in pattern.finditer(text):
                value = match.group(group)
                if not value:
                    continue
                entities.append(
                    DetectedEntity(
                        type=entity_type,
                        original=value,
                        span=Span(match.start(group), match.end(group)),
                    )
                )
        entities.sort(key=lambda e: e.span.start)
        Log.debug(f"Example detector found {len(entities)} candidate entities")
        return entities
