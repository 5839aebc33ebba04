"""Section extraction from generated text, and rendering back to text."""

from __future__ import annotations

import json
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from standup.errors import MalformedGeneration, NoSectionsFound
from standup.models import NONE_SENTINEL, ParsedSections
from standup.taxonomy import DEFAULT_TAXONOMY, Taxonomy
from standup.tokenizer import find_durations, normalize_duration

_SECTION_HEADING_RE = re.compile(
    r"^[ \t]*#{2,}[ \t]*(completed|in[ \t-]*progress|support)\b[^\n]*$",
    re.IGNORECASE | re.MULTILINE,
)
_ANY_HEADING_RE = re.compile(r"^[ \t]*#{1,6}[ \t]+\S[^\n]*$", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*(?:[-*•+]|\d+[.)])\s+")
_EMPTY_MARKERS = {"none", "n/a", "na", "-", "nothing"}


class _CompletedItem(BaseModel):
    task: str
    note: str | None = None


class _InProgressItem(_CompletedItem):
    eta: str | None = None


class _JsonReport(BaseModel):
    """The alternate JSON generation contract."""

    model_config = ConfigDict(populate_by_name=True)

    completed: list[_CompletedItem]
    in_progress: list[_InProgressItem] = Field(alias="inProgress")
    support: str | None = None


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def support_phrase(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> str:
    """Return the first duration in text, unit spelled out, or the sentinel."""
    durations = find_durations(text or "", taxonomy)
    if not durations:
        return NONE_SENTINEL
    return _capitalize_first(normalize_duration(durations[0], taxonomy))


def _body_lines(body: str) -> list[str]:
    lines = []
    for line in body.splitlines():
        line = _BULLET_RE.sub("", line).strip()
        line = re.sub(r"\s+", " ", line)
        if not line or line.lower().rstrip(".") in _EMPTY_MARKERS:
            continue
        lines.append(line)
    return lines


def _section_key(heading: str) -> str:
    heading = heading.lower()
    if heading.startswith("completed"):
        return "completed"
    if heading.startswith("support"):
        return "support"
    return "in_progress"


def _extract_heading_sections(text: str, taxonomy: Taxonomy) -> ParsedSections | None:
    headings = list(_SECTION_HEADING_RE.finditer(text))
    if not headings:
        return None

    boundaries = sorted(
        {m.start() for m in _ANY_HEADING_RE.finditer(text)}
        | {m.start() for m in headings}
    )
    bodies: dict[str, list[str]] = {"completed": [], "in_progress": [], "support": []}

    for m in headings:
        end = next((b for b in boundaries if b > m.start()), len(text))
        body = text[m.end():end]
        bodies[_section_key(m.group(1))].extend(_body_lines(body))

    return ParsedSections(
        completed=bodies["completed"],
        in_progress=bodies["in_progress"],
        support=support_phrase("\n".join(bodies["support"]), taxonomy),
    )


def extract_json_block(text: str) -> str:
    """Extract JSON from a generated response, handling various formats.

    Handles:
    - ```json ... ``` code blocks
    - ``` ... ``` code blocks
    - Raw JSON without code blocks

    Raises:
        json.JSONDecodeError: If extracted text is invalid JSON
    """
    text = text.strip()

    if "```json" in text:
        start = text.find("```json") + len("```json")
        end = text.find("```", start)
        if end != -1:
            json_str = text[start:end].strip()
            json.loads(json_str)
            return json_str

    if "```" in text:
        start = text.find("```") + len("```")
        end = text.find("```", start)
        if end != -1:
            json_str = text[start:end].strip()
            json.loads(json_str)
            return json_str

    json.loads(text)
    return text


def _render_json_item(item: _InProgressItem | _CompletedItem) -> str:
    task = item.task.strip()
    note = (item.note or "").strip()
    line = f"{task}: {note}" if note else task
    eta = getattr(item, "eta", None)
    if eta and eta.strip():
        line += f" (ETA: {eta.strip()})"
    return line


def _extract_json_sections(text: str, taxonomy: Taxonomy) -> ParsedSections:
    try:
        data = json.loads(extract_json_block(text))
        report = _JsonReport.model_validate(data)
    except json.JSONDecodeError as e:
        raise MalformedGeneration(f"Generated JSON does not parse: {e}") from e
    except ValidationError as e:
        raise MalformedGeneration(
            f"Generated JSON lacks required fields: {e.error_count()} errors"
        ) from e

    return ParsedSections(
        completed=[_render_json_item(i) for i in report.completed],
        in_progress=[_render_json_item(i) for i in report.in_progress],
        support=support_phrase(report.support or "", taxonomy),
    )


def _looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return "```" in stripped or stripped.startswith("{")


def extract_sections(text: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> ParsedSections:
    """
    Extract the Completed / In Progress / Support sections from generated text.

    Heading-based text (``## Completed`` etc., any order, any case) is tried
    first; a fenced or bare JSON object is accepted when no headings exist.

    Args:
        text: Generated text

    Returns:
        ParsedSections with "None" for every empty section

    Raises:
        MalformedGeneration: JSON was present but invalid or incomplete
        NoSectionsFound: Neither headings nor JSON were found
    """
    text = text or ""

    sections = _extract_heading_sections(text, taxonomy)
    if sections is not None:
        return sections

    if _looks_like_json(text):
        return _extract_json_sections(text, taxonomy)

    raise NoSectionsFound("No section headings or JSON payload in generated text")


def render_sections(sections: ParsedSections) -> str:
    """Render sections as heading-delimited markdown that extract_sections reads back."""
    lines = []

    lines.append("## Completed")
    lines.extend(_render_bullets(sections.completed))
    lines.append("")

    lines.append("## In Progress")
    lines.extend(_render_bullets(sections.in_progress))
    lines.append("")

    lines.append("## Support")
    lines.append(sections.support)

    return "\n".join(lines) + "\n"


def _render_bullets(bullets: list[str]) -> list[str]:
    if bullets == [NONE_SENTINEL]:
        return [NONE_SENTINEL]
    return [f"- {b}" for b in bullets]


def render_report(sections: ParsedSections, title: str, date: datetime) -> str:
    """Render a full report: title, date line, then the three sections."""
    header = [
        f"# {title}",
        f"**Date:** {date.strftime('%Y-%m-%d')}",
        "",
    ]
    return "\n".join(header) + "\n" + render_sections(sections)
