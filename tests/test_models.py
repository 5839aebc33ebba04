"""Tests for pydantic models."""

import pytest
from pydantic import ValidationError

from standup.models import Classification, ParsedSections, RawInput


class TestParsedSections:
    """Tests for the "None" sentinel handling."""

    def test_defaults(self):
        sections = ParsedSections()
        assert sections.completed == ["None"]
        assert sections.in_progress == ["None"]
        assert sections.support == "None"
        assert not (sections.has_completed or sections.has_in_progress or sections.has_support)

    @pytest.mark.parametrize("value", [None, [], ["", "  "], "None", ["None"]])
    def test_empty_values_become_sentinel(self, value):
        assert ParsedSections(completed=value).completed == ["None"]

    def test_sentinel_dropped_when_bullets_exist(self):
        sections = ParsedSections(in_progress=["None", " Testing LAA-2 "])
        assert sections.in_progress == ["Testing LAA-2"]
        assert sections.has_in_progress

    def test_single_string_becomes_list(self):
        assert ParsedSections(completed="Fixed LAA-1").completed == ["Fixed LAA-1"]

    def test_blank_support(self):
        assert ParsedSections(support="  ").support == "None"

    def test_frozen(self):
        sections = ParsedSections()
        with pytest.raises(ValidationError):
            sections.support = "20 minutes"


class TestRawInput:
    """Tests for RawInput."""

    def test_combined_text_folds_legacy_fields(self):
        raw = RawInput(
            accomplishments="fixed LAA-1",
            inProgress="testing LAA-2",
            blockers="  ",
            notes="got help for 20 min",
        )
        assert raw.combined_text() == "fixed LAA-1\ntesting LAA-2\ngot help for 20 min"

    def test_field_name_and_alias(self):
        assert RawInput(accomplishments="a", in_progress="b").in_progress == "b"
        assert RawInput(accomplishments="a", inProgress="b").in_progress == "b"

    def test_accomplishments_required(self):
        with pytest.raises(ValidationError):
            RawInput()


class TestClassification:
    """Tests for Classification."""

    def test_values(self):
        assert Classification.IN_PROGRESS.value == "InProgress"
        assert Classification("Completed") is Classification.COMPLETED
