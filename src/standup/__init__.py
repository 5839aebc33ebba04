"""Structured daily standup reports from free-form updates."""

from standup.arbitrator import extract
from standup.errors import InvalidInput
from standup.models import ExtractionResult, ParsedSections, RawInput

__all__ = ["extract", "InvalidInput", "ExtractionResult", "ParsedSections", "RawInput"]
