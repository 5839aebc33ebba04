"""Quality gate and arbitration between generated and rule-based extraction."""

from __future__ import annotations

import logging
import re
from collections import Counter
from difflib import SequenceMatcher

from standup.classifier import classify, clean_bullet, is_support
from standup.config import Config
from standup.errors import InvalidInput, RecoverableExtractionError
from standup.generation import GenerationAdapter
from standup.models import (
    NONE_SENTINEL,
    Classification,
    ExtractionResult,
    ParsedSections,
    RawInput,
    Segment,
)
from standup.prompt import build_prompt
from standup.sections import extract_sections, support_phrase
from standup.taxonomy import DEFAULT_TAXONOMY, Taxonomy, load_taxonomy
from standup.tokenizer import find_tickets, segment, ticket_mentions

logger = logging.getLogger(__name__)

# Words that may surround a bare duration without making it a task
_DURATION_FILLER_RE = re.compile(
    r"\b(?:spent|took|for|it|about|around|roughly|total|of|me|a|an|the)\b",
    re.IGNORECASE,
)


def _input_text(raw_input: str | RawInput) -> str:
    if isinstance(raw_input, RawInput):
        if not raw_input.accomplishments or not raw_input.accomplishments.strip():
            raise InvalidInput("accomplishments must not be empty")
        return raw_input.combined_text()
    if not isinstance(raw_input, str) or not raw_input.strip():
        raise InvalidInput("Report text must not be empty")
    return raw_input


def find_red_flags(
    sections: ParsedSections,
    generated_text: str = "",
    config: Config | None = None,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> list[str]:
    """
    List the reasons a generated result should not be trusted.

    Checks:
    - a section longer than config.max_section_bullets
    - the same ticket mentioned more than once within one section
    - a known hallucination marker in the generated text or the bullets

    Returns:
        Human-readable flag descriptions; empty when the result looks sound
    """
    config = config or Config()
    flags = []

    for name, bullets in (
        ("Completed", sections.completed),
        ("In Progress", sections.in_progress),
    ):
        if len(bullets) > config.max_section_bullets:
            flags.append(
                f"{name} has {len(bullets)} bullets (max {config.max_section_bullets})"
            )
        counts = Counter(t for b in bullets for t in ticket_mentions(b, taxonomy))
        repeated = sorted(t for t, n in counts.items() if n > 1)
        if repeated:
            flags.append(f"{name} repeats {', '.join(repeated)}")

    haystack = "\n".join(
        [generated_text, *sections.completed, *sections.in_progress, sections.support]
    ).lower()
    for marker in taxonomy.hallucination_markers:
        if marker.lower() in haystack:
            flags.append(f"hallucination marker {marker!r}")

    return flags


def _is_support_only(seg: Segment, support: bool) -> bool:
    """A ticket-free segment that only states time spent receiving help."""
    if seg.ticket_ids or not seg.duration_phrase:
        return False
    if support:
        return True
    leftover = seg.text.replace(seg.duration_phrase, " ")
    leftover = _DURATION_FILLER_RE.sub(" ", leftover)
    return len(re.sub(r"[\W_]+", "", leftover)) < 4


def _deduplicate(
    bullets: list[tuple[str, list[str]]], threshold: float
) -> list[str]:
    """Drop bullets >= threshold similar to a kept one with the same tickets."""
    kept: list[tuple[str, list[str]]] = []
    for text, tickets in bullets:
        is_duplicate = False
        for kept_text, kept_tickets in kept:
            if kept_tickets != tickets:
                continue
            similarity = SequenceMatcher(None, text.lower(), kept_text.lower()).ratio()
            if similarity >= threshold:
                is_duplicate = True
                break
        if not is_duplicate:
            kept.append((text, tickets))
    return [text for text, _ in kept]


def rule_based_sections(
    text: str,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    config: Config | None = None,
) -> ParsedSections:
    """
    Build sections from the raw text with no external help.

    Ambiguous segments are filed under In Progress. Support is the first
    duration said in a help-receiving segment, otherwise the first duration
    standing alone in a segment (e.g. "more than 20 min").
    """
    config = config or Config()
    completed: list[tuple[str, list[str]]] = []
    in_progress: list[tuple[str, list[str]]] = []
    help_durations: list[str] = []
    loose_durations: list[str] = []

    for seg in segment(text, taxonomy):
        support = is_support(seg, taxonomy)
        if support and seg.duration_phrase:
            help_durations.append(seg.duration_phrase)
        if _is_support_only(seg, support):
            if not support:
                loose_durations.append(seg.duration_phrase)
            continue

        bullet = clean_bullet(seg.text, taxonomy, config.max_bullet_length)
        if not bullet:
            continue

        label = classify(seg, taxonomy)
        target = completed if label == Classification.COMPLETED else in_progress
        target.append((bullet, find_tickets(bullet, taxonomy)))

    durations = help_durations or loose_durations
    return ParsedSections(
        completed=_deduplicate(completed, config.dedup_threshold),
        in_progress=_deduplicate(in_progress, config.dedup_threshold),
        support=support_phrase(durations[0], taxonomy) if durations else NONE_SENTINEL,
    )


async def extract(
    raw_input: str | RawInput,
    model_identifier: str = "",
    prefer_generated: bool = True,
    *,
    adapter: GenerationAdapter | None = None,
    config: Config | None = None,
    taxonomy: Taxonomy | None = None,
) -> ExtractionResult:
    """
    Turn a raw standup update into structured sections.

    Tries the generated path first when prefer_generated is set and an
    adapter is given; any generation, parsing or quality failure falls back
    to the rule-based path, which always succeeds.

    Args:
        raw_input: The update text, or a RawInput with legacy fields
        model_identifier: Model to ask; defaults to config.model
        prefer_generated: Try the external model before the rules
        adapter: Generation adapter; without one the rules are used directly
        config: Thresholds and prompt override
        taxonomy: Keyword tables; defaults to config.taxonomy_path or the built-ins

    Returns:
        ExtractionResult tagged "generated" or "rule-based"

    Raises:
        InvalidInput: The update is empty or whitespace-only
    """
    text = _input_text(raw_input)
    config = config or Config()
    taxonomy = taxonomy or load_taxonomy(config.taxonomy_path)
    model = model_identifier or config.model

    generated_text = None
    reason = None

    if prefer_generated and adapter is not None:
        try:
            prompt = build_prompt(text, taxonomy, config.extraction_prompt)
        except Exception as e:
            prompt = None
            reason = f"prompt template error: {e!r}"
            logger.error(f"Custom extraction prompt is invalid: {e!r}")

        if prompt is not None:
            try:
                generated_text = await adapter.generate(prompt, model)
                sections = extract_sections(generated_text, taxonomy)
            except RecoverableExtractionError as e:
                reason = f"{type(e).__name__}: {e}"
            except Exception as e:
                reason = f"unexpected {type(e).__name__}: {e}"
                logger.exception("Generated path failed unexpectedly")
            else:
                flags = find_red_flags(sections, generated_text, config, taxonomy)
                if not flags:
                    if config.verbose:
                        logger.info(f"Using generated sections from {model}")
                    return ExtractionResult(
                        sections=sections,
                        method="generated",
                        raw_generated_text=generated_text,
                        model=model,
                    )
                reason = "red flags: " + "; ".join(flags)

        logger.warning(f"Falling back to rule-based extraction ({reason})")
    elif prefer_generated:
        reason = "no generation adapter configured"
        logger.info("No generation adapter configured, using rule-based extraction")

    return ExtractionResult(
        sections=rule_based_sections(text, taxonomy, config),
        method="rule-based",
        raw_generated_text=generated_text,
        fallback_reason=reason,
        model=model,
    )
