"""Rule-based classification of segments into Completed / In Progress."""

from __future__ import annotations

import re

from standup.models import Classification, Segment
from standup.taxonomy import DEFAULT_TAXONOMY, Taxonomy, phrase_regex
from standup.tokenizer import canonicalize_tickets

DEFAULT_MAX_LENGTH = 150
ELLIPSIS = "..."

_PAST_TENSE_RE = re.compile(r"\b([a-z]{2,}ed)\b", re.IGNORECASE)
_CONTINUOUS_RE = re.compile(
    r"(?:\b(?:am|is|are|still)|'m|'re)\s+\w{2,}ing\b", re.IGNORECASE
)


def _has_past_tense(text: str, taxonomy: Taxonomy) -> bool:
    exceptions = {e.lower() for e in taxonomy.past_tense_exceptions}
    return any(
        m.group(1).lower() not in exceptions for m in _PAST_TENSE_RE.finditer(text)
    )


def is_completed(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> bool:
    """True when text carries a completed indicator or a past-tense verb."""
    if phrase_regex(taxonomy.completed).search(text):
        return True
    return _has_past_tense(text, taxonomy)


def is_in_progress(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> bool:
    """True when text carries an in-progress indicator or a continuous form."""
    if phrase_regex(taxonomy.in_progress).search(text):
        return True
    return bool(_CONTINUOUS_RE.search(text))


def is_support(segment: Segment, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> bool:
    """True when the segment talks about receiving help."""
    return bool(phrase_regex(taxonomy.support).search(segment.text))


def classify(segment: Segment, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> Classification:
    """
    Classify a segment.

    A segment matching both indicator sets is In Progress: a future or
    ongoing commitment means the work is not fully done. A segment matching
    neither is Ambiguous.
    """
    done = is_completed(segment.text, taxonomy)
    ongoing = is_in_progress(segment.text, taxonomy)
    if ongoing:
        return Classification.IN_PROGRESS
    if done:
        return Classification.COMPLETED
    return Classification.AMBIGUOUS


def _strip_leading(text: str, phrases: tuple[str, ...]) -> str:
    pattern = phrase_regex(phrases)
    while True:
        m = pattern.match(text)
        if not m:
            return text
        stripped = text[m.end():].lstrip(" ,")
        if not stripped:
            return text
        text = stripped


def clean_bullet(
    text: str,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """
    Turn a raw clause into a display bullet.

    Collapses whitespace, rewrites tickets to canonical form, strips leading
    pronouns and conjunctions, strips trailing punctuation, capitalizes the
    first letter and truncates to max_length with an ellipsis marker.
    """
    text = re.sub(r"\s+", " ", text or "").strip()
    text = canonicalize_tickets(text, taxonomy)

    previous = None
    while previous != text:
        previous = text
        text = _strip_leading(text, taxonomy.leading_conjunctions)
        text = _strip_leading(text, taxonomy.leading_pronouns)

    text = text.rstrip(" ,;:.!?-")
    if not text:
        return ""

    text = text[0].upper() + text[1:]

    if len(text) > max_length:
        cut = max(max_length - len(ELLIPSIS), 1)
        text = text[:cut].rstrip() + ELLIPSIS
    return text
