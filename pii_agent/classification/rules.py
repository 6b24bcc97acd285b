"""Ordered signal table used by the strategy classifier.

Each rule pairs a strategy and its rationale with a tuple of named
predicates. Rules are evaluated top to bottom and the first rule with any
matching predicate wins; signals inside a rule are checked in order and
evaluation stops at the first hit.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from pii_agent.classification.models import Strategy

Predicate = Callable[[str], bool]

ADDRESS_KEYWORDS: tuple[str, ...] = (
    "street", "st.", "avenue", "ave", "road", "rd", "boulevard", "blvd",
    "drive", "dr", "lane", "ln", "suite", "ste", "apt", "apartment",
    "building", "floor", "zip", "zipcode", "postal", "po box", "mile", "km",
    "kilometer", "highway",
)
CITY_KEYWORDS: tuple[str, ...] = (
    "city", "town", "village", "province", "county", "district", "borough",
    "municipality",
)

NUMERIC_RATIO_THRESHOLD = 0.25
MIN_CAPITALIZED_WORDS = 6
MIN_WESTERN_NAME_PAIRS = 3


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)


_ADDRESS_RE = _keyword_pattern(ADDRESS_KEYWORDS)
_ZIP_RE = re.compile(r"\b\d{5}(?:-\d{4})?\b")
_RELATIVE_LOCATION_RE = re.compile(
    r"\b(?:north|south|east|west|across from|next to|nearby|opposite)\b",
    re.IGNORECASE,
)

_DIGIT_RE = re.compile(r"\d")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_CLOCK_RE = re.compile(r"\b\d{1,2}:\d{2}\s?(?:am|pm)?\b", re.IGNORECASE)
_CLOCK_SHORT_RE = re.compile(r"\b\d{1,2}(?:am|pm)\b", re.IGNORECASE)
_DATE_RE = re.compile(r"\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b")
_REFERENCE_ID_RE = re.compile(r"\b[A-Z]{2,}\d{3,}\b")

_HYPHENATED_NAME_RE = re.compile(r"\b[A-Z][a-z]+-[A-Z][a-z]+\b")
_CITY_RE = _keyword_pattern(CITY_KEYWORDS)
_CAPITALIZED_WORD_RE = re.compile(r"\b[A-Z][a-z]{2,}\b")

_WESTERN_NAME_RE = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")
_PROVINCE_RE = re.compile(r"\b(?:province|prefecture|county|state)\b", re.IGNORECASE)


def has_address_keyword(text: str) -> bool:
    return _ADDRESS_RE.search(text) is not None


def has_postal_code(text: str) -> bool:
    return _ZIP_RE.search(text) is not None


def has_relative_location(text: str) -> bool:
    return _RELATIVE_LOCATION_RE.search(text) is not None


def numeric_ratio(text: str) -> float:
    """Digits per letter; letters are floored at one to avoid division by zero."""
    digits = len(_DIGIT_RE.findall(text))
    letters = len(_LETTER_RE.findall(text))
    return digits / max(letters, 1)


def is_numeric_heavy(text: str) -> bool:
    return numeric_ratio(text) > NUMERIC_RATIO_THRESHOLD


def has_clock_time(text: str) -> bool:
    return _CLOCK_RE.search(text) is not None or _CLOCK_SHORT_RE.search(text) is not None


def has_date(text: str) -> bool:
    return _DATE_RE.search(text) is not None


def has_reference_id(text: str) -> bool:
    return _REFERENCE_ID_RE.search(text) is not None


def has_hyphenated_name(text: str) -> bool:
    return _HYPHENATED_NAME_RE.search(text) is not None


def has_city_keyword(text: str) -> bool:
    return _CITY_RE.search(text) is not None


def has_list_of_places(text: str) -> bool:
    return len(_CAPITALIZED_WORD_RE.findall(text)) >= MIN_CAPITALIZED_WORDS and "," in text


def has_many_western_names(text: str) -> bool:
    return len(_WESTERN_NAME_RE.findall(text)) >= MIN_WESTERN_NAME_PAIRS


def has_province_keyword(text: str) -> bool:
    return _PROVINCE_RE.search(text) is not None


@dataclass(frozen=True)
class ClassificationRule:
    """One signal group of the classifier."""

    name: str
    strategy: Strategy
    rationale: str
    signals: tuple[tuple[str, Predicate], ...]

    def first_match(self, text: str) -> str | None:
        """Return the name of the first signal that fires on *text*."""
        for signal_name, predicate in self.signals:
            if predicate(text):
                return signal_name
        return None


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="location",
        strategy=Strategy.LOCATION_SPECIALIST,
        rationale="Detected address-like keywords and locations suited for NeMo.",
        signals=(
            ("address_keyword", has_address_keyword),
            ("postal_code", has_postal_code),
            ("relative_location", has_relative_location),
        ),
    ),
    ClassificationRule(
        name="numeric",
        strategy=Strategy.NUMERIC_SPECIALIST,
        rationale="Prompt is dominated by numeric or timestamp patterns, ideal for AI4Privacy.",
        signals=(
            ("numeric_ratio", is_numeric_heavy),
            ("clock_time", has_clock_time),
            ("date", has_date),
            ("reference_id", has_reference_id),
        ),
    ),
    ClassificationRule(
        name="city",
        strategy=Strategy.CITY_SPECIALIST,
        rationale="Found city/town references or hyphenated surnames where Piranha excels.",
        signals=(
            ("hyphenated_name", has_hyphenated_name),
            ("city_keyword", has_city_keyword),
            ("list_of_places", has_list_of_places),
        ),
    ),
    ClassificationRule(
        name="western",
        strategy=Strategy.BROAD_WESTERN_SPECIALIST,
        rationale=(
            "Multiple Western-style person/province patterns detected, "
            "matching BDMBZ strengths."
        ),
        signals=(
            ("western_names", has_many_western_names),
            ("province_keyword", has_province_keyword),
        ),
    ),
)

DEFAULT_RATIONALE = "Balanced prompt – defaulting to Presidio for reliable coverage."
EMPTY_RATIONALE = "No prompt detected, falling back to Presidio."
