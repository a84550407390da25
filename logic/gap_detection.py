"""Outfit gap detection for upcoming calendar events.

An event title is mapped to the subcategories a wearer needs for it. Those are
counted against the owner's closet, and the result is turned into a
user-facing :class:`GapMessage`. A message either offers a try-on or sends the
user to a shopping search.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

SEARCH_BASE_URL = "https://www.google.com/search?q="

FORMAL_KEYWORDS = ("formal", "gala", "black tie")
BUSINESS_KEYWORDS = ("meeting", "interview", "presentation")
ACTIVE_KEYWORDS = ("workout", "run", "yoga")
SWIM_KEYWORDS = ("beach", "pool")
_NUMBERING = re.compile(r"^\d+[.)]\s+")


@dataclass
class GapMessage:
    title: str
    detail: str
    external_url: str = ""
    suggestions: List[str] = field(default_factory=list)
    use_try_on: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "detail": self.detail,
            "external_url": self.external_url,
            "suggestions": list(self.suggestions),
            "use_try_on": self.use_try_on,
        }


def _gender_key(gender: Optional[str]) -> str:
    # "female" contains "male", so it must be tested first.
    lowered = (gender or "").lower()
    if "female" in lowered:
        return "female"
    if "male" in lowered:
        return "male"
    return "other"


def is_formal_event(event_text: str) -> bool:
    lowered = (event_text or "").lower()
    return any(keyword in lowered for keyword in FORMAL_KEYWORDS)


def formal_key_items(gender: Optional[str]) -> List[str]:
    return {
        "female": ["Dress", "Heels"],
        "male": ["Suit", "Dress Shoes"],
    }.get(_gender_key(gender), ["Formal", "Heels"])


def required_items(event_text: str, gender: Optional[str] = None) -> List[str]:
    """Return the subcategories an event calls for, adjusted by gender."""

    lowered = (event_text or "").lower()
    if is_formal_event(lowered):
        return formal_key_items(gender)
    if any(keyword in lowered for keyword in BUSINESS_KEYWORDS):
        if _gender_key(gender) == "female":
            return ["Blazer", "Pumps"]
        return ["Blazer", "Shirt"]
    if any(keyword in lowered for keyword in ACTIVE_KEYWORDS):
        return ["Activewear"]
    if any(keyword in lowered for keyword in SWIM_KEYWORDS):
        return ["Swim"]
    return ["Top"]


def build_search_url(
    items: Sequence[str], event: Optional[str] = None, location: Optional[str] = None
) -> str:
    """Build a shopping search link for the missing items."""

    raw_query = f"buy {' '.join(items)}"
    if event:
        raw_query += f" for {event}"
    if location:
        raw_query += f" in {location}"
    return SEARCH_BASE_URL + quote(raw_query)


def suggestions_search_url(suggestions: Sequence[str]) -> str:
    """Search link built from AI shopping phrases, joined with ``+``."""

    return SEARCH_BASE_URL + quote("+".join(suggestions), safe="+")


def fallback_picks(items: Sequence[str], location: Optional[str] = None) -> Tuple[str, List[str]]:
    """Plain ``buy <items> in <loc>`` search used when AI suggestions fail."""

    loc = location or "your area"
    phrase = f"buy {' '.join(items)} in {loc}"
    return SEARCH_BASE_URL + quote(phrase), [phrase]


def parse_suggestions(text: Optional[str]) -> List[str]:
    """Split AI output on commas and newlines into clean phrases."""

    if not text:
        return []
    phrases: List[str] = []
    for piece in text.replace(",", "\n").split("\n"):
        cleaned = piece.strip().lstrip("-*•").strip()
        cleaned = _NUMBERING.sub("", cleaned)
        if cleaned:
            phrases.append(cleaned)
    return phrases


def available_count(required: Sequence[str], counts: Mapping[str, int]) -> int:
    return sum(int(counts.get(name, 0)) for name in required)


def detect_gap(
    event: str,
    required: Sequence[str],
    counts: Mapping[str, int],
    weather_snippet: Optional[str] = None,
) -> GapMessage:
    """Compare the required subcategories with the owner's closet counts."""

    has_items = available_count(required, counts) > 0
    title = "Suggested Outfit Available" if has_items else "Style Gap Detected"
    detail = f"Suggested: {', '.join(required)} for {event}."
    if weather_snippet:
        detail += f" {weather_snippet}."
    return GapMessage(title=title, detail=detail, use_try_on=has_items)


def evaluate_try_on(
    event: Optional[str],
    gender: Optional[str],
    counts: Mapping[str, int],
    location: Optional[str] = None,
) -> Tuple[bool, Optional[GapMessage]]:
    """Decide whether a try-on can be offered for ``event``.

    Formal events need at least one formal key item; anything else only needs
    a non-empty closet. When a try-on is not possible the returned message
    links to a shopping search.
    """

    upcoming = event or ""
    if is_formal_event(upcoming):
        keys = formal_key_items(gender)
        if available_count(keys, counts) > 0:
            return True, None
        return False, GapMessage(
            title="Style Gap: No formal items found",
            detail="We couldn't find formal items in your closet metadata. View suggested picks.",
            external_url=build_search_url(keys, upcoming, location),
        )

    total_items = sum(int(value) for value in counts.values())
    if total_items > 0:
        return True, None
    return False, GapMessage(
        title="Style Gap: Empty wardrobe",
        detail="We couldn't find suitable items in your closet.",
        external_url=build_search_url(["clothing"], upcoming, location),
    )


__all__ = [
    "GapMessage",
    "available_count",
    "build_search_url",
    "detect_gap",
    "evaluate_try_on",
    "fallback_picks",
    "formal_key_items",
    "is_formal_event",
    "parse_suggestions",
    "required_items",
    "suggestions_search_url",
]
