"""Keyword taxonomy shared by the classifier and the prompt builder.

Every keyword list the heuristics depend on lives here, so the rules the
external model is told about and the rules the fallback applies cannot drift.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Taxonomy:
    """Named keyword tables. Multi-word entries match as whole phrases."""

    completed: tuple[str, ...] = (
        "finished",
        "completed",
        "done",
        "resolved",
        "closed",
        "fixed",
        "updated",
        "created",
        "deployed",
        "merged",
        "wrapped up",
        "got over the line",
        "cleared",
        "shipped",
        "released",
    )
    # Words ending in -ed that are not past-tense verbs
    past_tense_exceptions: tuple[str, ...] = (
        "need",
        "needed",
        "speed",
        "seed",
        "feed",
        "indeed",
        "proceed",
        "exceed",
        "succeed",
        "embed",
        "scheduled",
        "planned",
        "blocked",
        "assigned",
        "expected",
        "required",
        "supposed",
        "hundred",
    )
    in_progress: tuple[str, ...] = (
        "will",
        "going to",
        "gonna",
        "plan to",
        "planning to",
        "currently",
        "testing",
        "working on",
        "developing",
        "investigating",
        "in progress",
        "ongoing",
        "still",
        "next week",
        "tomorrow",
        "by end of week",
        "by end of day",
        "eow",
        "eod",
    )
    support: tuple[str, ...] = (
        "help",
        "helped",
        "support",
        "supported",
        "assisted",
        "assistance",
        "guidance",
        "paired",
        "pairing",
        "walked me through",
        "showed me",
        "time saved",
        "saved",
    )
    leading_pronouns: tuple[str, ...] = (
        "i have",
        "i've",
        "i'm",
        "i am",
        "i",
        "we have",
        "we've",
        "we're",
        "we",
    )
    leading_conjunctions: tuple[str, ...] = ("and also", "and", "also", "then", "plus")
    ticket_prefixes: tuple[str, ...] = ("LAA", "JIRA", "TICKET")
    work_verbs: tuple[str, ...] = (
        "test",
        "testing",
        "tested",
        "fix",
        "fixing",
        "fixed",
        "review",
        "reviewing",
        "reviewed",
        "deploy",
        "deploying",
        "deployed",
        "close",
        "closed",
        "finish",
        "finished",
        "complete",
        "completed",
    )
    duration_modifiers: tuple[str, ...] = (
        "more than",
        "over",
        "about",
        "around",
        "approximately",
    )
    hallucination_markers: tuple[str, ...] = (
        "as an ai language model",
        "as an ai assistant",
        "[insert",
        "lorem ipsum",
        "raw input:",
        "raw update:",
        "now format this",
        "example 1",
        "<<<",
        ">>>",
    )

    @classmethod
    def merged(cls, base: Taxonomy, overrides: dict) -> Taxonomy:
        """Return ``base`` with each list in ``overrides`` appended (deduplicated)."""
        known = {f.name for f in fields(cls)}
        changes = {}
        for key, values in overrides.items():
            if key not in known:
                logger.warning(f"Ignoring unknown taxonomy key: {key}")
                continue
            if not isinstance(values, list):
                logger.warning(f"Taxonomy key {key} must be a list, got {type(values).__name__}")
                continue
            current = list(getattr(base, key))
            for value in values:
                value = str(value).strip()
                if value and value.lower() not in (c.lower() for c in current):
                    current.append(value)
            changes[key] = tuple(current)
        return replace(base, **changes)


DEFAULT_TAXONOMY = Taxonomy()


@lru_cache(maxsize=64)
def phrase_regex(phrases: tuple[str, ...]) -> re.Pattern:
    """Compile a case-insensitive whole-phrase alternation, longest phrase first."""
    ordered = sorted(phrases, key=len, reverse=True)
    body = "|".join(re.escape(p).replace(r"\ ", r"\s+") for p in ordered)
    return re.compile(rf"(?<![\w'])(?:{body})(?![\w'])", re.IGNORECASE)


def load_taxonomy(path: str) -> Taxonomy:
    """
    Load taxonomy extensions from a YAML file.

    The file holds a mapping of taxonomy keys to lists, for example::

        completed:
          - signed off
        in_progress:
          - blocked on

    Args:
        path: Path to YAML file

    Returns:
        The default taxonomy extended with the file's entries.
        Returns the default taxonomy if the file is missing or malformed.
    """
    if not path:
        return DEFAULT_TAXONOMY

    filepath = Path(path).expanduser()

    if not filepath.exists():
        logger.warning(f"Taxonomy file not found: {path}")
        return DEFAULT_TAXONOMY

    try:
        with open(filepath, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading taxonomy from {path}: {e}")
        return DEFAULT_TAXONOMY

    if not isinstance(data, dict):
        return DEFAULT_TAXONOMY

    return Taxonomy.merged(DEFAULT_TAXONOMY, data)
