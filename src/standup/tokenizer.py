"""Clause segmentation plus ticket and duration extraction.

Everything here is a pure function of its input and degrades quietly on
malformed text: the worst case is fewer segments, never an exception.
"""

from __future__ import annotations

import re

from standup.models import Segment
from standup.taxonomy import DEFAULT_TAXONOMY, Taxonomy

MIN_SEGMENT_LENGTH = 4
DEFAULT_TICKET_PREFIX = "TASK"

_HASH_TICKET_RE = re.compile(r"(?<![\w#])#(\d+)\b")
_WORD_TICKET_RE = re.compile(r"\b(?:task|ticket)\s*[-#]?\s*(\d+)\b", re.IGNORECASE)

_UNIT_RE = r"(?:minutes?|mins?|hours?|hrs?|h|m)"
_NUMBER_RE = r"\d+(?:\.\d+)?"
_MONTH_RE = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)

# Sentence terminators only count when followed by whitespace or end of text
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+(?=\s|$)|[;\n]+|,(?!\d)")


def _prefixed_ticket_re(taxonomy: Taxonomy) -> re.Pattern:
    prefixes = "|".join(re.escape(p) for p in taxonomy.ticket_prefixes)
    return re.compile(rf"\b({prefixes})[-\s]*(\d+)\b", re.IGNORECASE)


def _bare_ticket_re(taxonomy: Taxonomy) -> re.Pattern:
    verbs = "|".join(re.escape(v) for v in taxonomy.work_verbs)
    return re.compile(
        rf"\b(?:{verbs})\s+(?!(?:19|20)\d\d\b)(\d{{2,6}})\b"
        rf"(?!\s*(?:{_UNIT_RE}\b|{_MONTH_RE}\b|%|[./-]\d))",
        re.IGNORECASE,
    )


def _duration_re(taxonomy: Taxonomy) -> re.Pattern:
    modifiers = "|".join(
        re.escape(m).replace(r"\ ", r"\s+")
        for m in sorted(taxonomy.duration_modifiers, key=len, reverse=True)
    )
    return re.compile(
        rf"(?:\b({modifiers})\s+)?\b({_NUMBER_RE})\s*"
        r"(minutes?|mins?|hours?|hrs?)\b",
        re.IGNORECASE,
    )


def _ticket_matches(text: str, taxonomy: Taxonomy) -> list[tuple[int, int, str]]:
    """Return non-overlapping (start, end, canonical_id) spans in text order."""
    spans: list[tuple[int, int, str]] = []

    def _claim(start: int, end: int, canonical: str) -> None:
        for s, e, _ in spans:
            if start < e and s < end:
                return
        spans.append((start, end, canonical))

    for m in _prefixed_ticket_re(taxonomy).finditer(text):
        _claim(m.start(), m.end(), f"{m.group(1).upper()}-{int(m.group(2))}")
    for m in _HASH_TICKET_RE.finditer(text):
        _claim(m.start(), m.end(), f"{DEFAULT_TICKET_PREFIX}-{int(m.group(1))}")
    for m in _WORD_TICKET_RE.finditer(text):
        _claim(m.start(), m.end(), f"{DEFAULT_TICKET_PREFIX}-{int(m.group(1))}")
    for m in _bare_ticket_re(taxonomy).finditer(text):
        _claim(m.start(1), m.end(1), f"{DEFAULT_TICKET_PREFIX}-{int(m.group(1))}")

    spans.sort()
    return spans


def find_tickets(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> list[str]:
    """Find ticket references, normalized to PREFIX-NUMBER, deduplicated in order."""
    if not text:
        return []
    seen: list[str] = []
    for _, _, canonical in _ticket_matches(text, taxonomy):
        if canonical not in seen:
            seen.append(canonical)
    return seen


def ticket_mentions(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> list[str]:
    """Every ticket mention in text order, repeats included."""
    if not text:
        return []
    return [canonical for _, _, canonical in _ticket_matches(text, taxonomy)]


def canonicalize_tickets(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> str:
    """Rewrite every ticket mention in text to its canonical PREFIX-NUMBER form."""
    spans = _ticket_matches(text, taxonomy)
    if not spans:
        return text
    out = []
    last = 0
    for start, end, canonical in spans:
        out.append(text[last:start])
        out.append(canonical)
        last = end
    out.append(text[last:])
    return "".join(out)


def find_durations(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> list[str]:
    """Return every duration phrase exactly as it appears in text."""
    if not text:
        return []
    return [m.group(0) for m in _duration_re(taxonomy).finditer(text)]


def normalize_duration(phrase: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> str:
    """
    Spell out the unit of a duration phrase, keeping modifier and value.

    "more than 20 min" -> "more than 20 minutes"; "1 hr" -> "1 hour".
    Returns the phrase unchanged when it does not look like a duration.
    """
    m = _duration_re(taxonomy).search(phrase or "")
    if not m:
        return phrase
    modifier, value, unit = m.group(1), m.group(2), m.group(3).lower()
    singular = float(value) == 1
    if unit.startswith("h"):
        unit = "hour" if singular else "hours"
    else:
        unit = "minute" if singular else "minutes"
    if modifier:
        modifier = re.sub(r"\s+", " ", modifier)
        return f"{modifier} {value} {unit}"
    return f"{value} {unit}"


def _is_ticket_only(fragment: str, taxonomy: Taxonomy) -> bool:
    remainder = fragment
    for start, end, _ in reversed(_ticket_matches(fragment, taxonomy)):
        remainder = remainder[:start] + remainder[end:]
    remainder = re.sub(r"\b(?:and|or|&)\b", " ", remainder, flags=re.IGNORECASE)
    return not remainder.strip(" \t-,.") and bool(find_tickets(fragment, taxonomy))


def _split_on_also(fragment: str, taxonomy: Taxonomy) -> list[str]:
    prefixes = "|".join(re.escape(p) for p in taxonomy.ticket_prefixes)
    ticket_ahead = rf"(?:{prefixes}|task|ticket)[-\s]*\d|#\d"
    pattern = re.compile(
        rf"\s+(?:and\s+)?also\b(?!\s+(?:{ticket_ahead}))", re.IGNORECASE
    )
    return pattern.split(fragment)


def _raw_fragments(text: str, taxonomy: Taxonomy) -> list[str]:
    fragments: list[str] = []
    for piece in _SENTENCE_SPLIT_RE.split(text):
        fragments.extend(_split_on_also(piece, taxonomy))
    return [f.strip() for f in fragments if f and f.strip()]


def segment(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> list[Segment]:
    """
    Split a raw update into clause-like segments.

    Splits on sentence terminators, commas, semicolons, newlines and the
    conjunctions "also"/"and also" (unless a ticket reference follows).
    Fragments holding nothing but ticket references are folded into the
    preceding fragment; fragments shorter than MIN_SEGMENT_LENGTH are dropped.

    Args:
        text: Raw update text

    Returns:
        Segments in input order; empty list for blank input
    """
    if not text or not text.strip():
        return []

    merged: list[str] = []
    for fragment in _raw_fragments(text, taxonomy):
        if merged and _is_ticket_only(fragment, taxonomy):
            merged[-1] = f"{merged[-1]}, {fragment}"
            continue
        merged.append(fragment)

    segments: list[Segment] = []
    for fragment in merged:
        fragment = re.sub(r"\s+", " ", fragment).strip(" \t-")
        if len(fragment) < MIN_SEGMENT_LENGTH:
            continue
        durations = find_durations(fragment, taxonomy)
        segments.append(
            Segment(
                text=fragment,
                ticket_ids=find_tickets(fragment, taxonomy),
                duration_phrase=durations[0] if durations else None,
            )
        )
    return segments
