"""Tests for section extraction and rendering."""

import json
from datetime import datetime

import pytest

from standup.errors import MalformedGeneration, NoSectionsFound
from standup.models import ParsedSections
from standup.sections import (
    extract_json_block,
    extract_sections,
    render_report,
    render_sections,
    support_phrase,
)


class TestExtractHeadingSections:
    """Tests for heading-delimited generated text."""

    def test_canonical_order(self):
        text = (
            "## Completed\n"
            "- Done with LAA-107 and LAA-90\n"
            "\n"
            "## In Progress\n"
            "- Will test TASK-117 today\n"
            "\n"
            "## Support\n"
            "None\n"
        )
        sections = extract_sections(text)

        assert sections.completed == ["Done with LAA-107 and LAA-90"]
        assert sections.in_progress == ["Will test TASK-117 today"]
        assert sections.support == "None"

    def test_any_order_and_case(self):
        text = (
            "## support\nabout 2 hrs\n"
            "## IN PROGRESS\n* testing LAA-2\n"
            "### Completed:\n1. Fixed LAA-1\n2) Merged the PR\n"
        )
        sections = extract_sections(text)

        assert sections.completed == ["Fixed LAA-1", "Merged the PR"]
        assert sections.in_progress == ["testing LAA-2"]
        assert sections.support == "About 2 hours"

    def test_preamble_and_trailing_headings_ignored(self):
        text = (
            "Sure! Here is the report.\n"
            "## Completed\n- Fixed the build\n"
            "# Notes\nThis line belongs to no section\n"
        )
        sections = extract_sections(text)

        assert sections.completed == ["Fixed the build"]
        assert sections.in_progress == ["None"]

    @pytest.mark.parametrize("marker", ["None", "none.", "N/A", "-", "Nothing"])
    def test_empty_markers_become_sentinel(self, marker):
        sections = extract_sections(f"## Completed\n{marker}\n## In Progress\n- Testing\n")
        assert sections.completed == ["None"]
        assert not sections.has_completed

    def test_missing_sections_default_to_sentinel(self):
        sections = extract_sections("## In Progress\n- Working on LAA-4")
        assert sections.completed == ["None"]
        assert sections.in_progress == ["Working on LAA-4"]
        assert sections.support == "None"

    def test_support_without_duration_is_none(self):
        sections = extract_sections("## Completed\n- Fixed it\n## Support\nPriya helped a lot")
        assert sections.support == "None"

    def test_support_takes_first_duration(self):
        sections = extract_sections(
            "## Support\n- More than 20 min with Priya\n- about 1 hr with Sam"
        )
        assert sections.support == "More than 20 minutes"

    def test_heading_text_inside_bullet_is_not_a_heading(self):
        sections = extract_sections("## Completed\n- Updated the Support page copy\n")
        assert sections.completed == ["Updated the Support page copy"]
        assert sections.support == "None"


class TestExtractJsonSections:
    """Tests for the JSON generation contract."""

    def test_fenced_json(self):
        payload = {
            "completed": [{"task": "Fixed LAA-1", "note": "login"}],
            "inProgress": [{"task": "Testing LAA-2", "eta": "Friday"}],
            "support": "about 1 hr",
        }
        text = f"```json\n{json.dumps(payload)}\n```"

        sections = extract_sections(text)

        assert sections.completed == ["Fixed LAA-1: login"]
        assert sections.in_progress == ["Testing LAA-2 (ETA: Friday)"]
        assert sections.support == "About 1 hour"

    def test_bare_json_with_snake_case_key(self):
        text = json.dumps({"completed": [], "in_progress": [{"task": "Reviewing docs"}]})

        sections = extract_sections(text)

        assert sections.completed == ["None"]
        assert sections.in_progress == ["Reviewing docs"]
        assert sections.support == "None"

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedGeneration):
            extract_sections('{"completed": [')

    def test_missing_fields_is_malformed(self):
        with pytest.raises(MalformedGeneration):
            extract_sections('{"support": "20 min"}')

    def test_headings_win_over_json(self):
        text = '## Completed\n- Closed LAA-9\n```json\n{"completed": []}\n```'
        assert extract_sections(text).completed[0] == "Closed LAA-9"


class TestNoSections:
    """Tests for text with no recognizable structure."""

    @pytest.mark.parametrize("text", ["", "Just some prose about my day.", "# Title only"])
    def test_raises(self, text):
        with pytest.raises(NoSectionsFound):
            extract_sections(text)


class TestExtractJsonBlock:
    """Tests for extract_json_block."""

    def test_json_code_block(self):
        text = 'Here it is:\n```json\n{"a": 1}\n```\nThanks'
        assert json.loads(extract_json_block(text)) == {"a": 1}

    def test_plain_code_block(self):
        assert json.loads(extract_json_block('```\n{"a": 1}\n```')) == {"a": 1}

    def test_raw_json(self):
        assert json.loads(extract_json_block('  {"a": 1}  ')) == {"a": 1}

    def test_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            extract_json_block("not json")


class TestSupportPhrase:
    """Tests for support_phrase."""

    def test_normalizes_and_capitalizes(self):
        assert support_phrase("got help for more than 20 min") == "More than 20 minutes"

    def test_no_duration(self):
        assert support_phrase("no help today") == "None"


class TestRender:
    """Tests for render_sections and render_report."""

    def test_empty_sections(self):
        assert render_sections(ParsedSections()) == (
            "## Completed\nNone\n\n## In Progress\nNone\n\n## Support\nNone\n"
        )

    def test_bullets(self):
        sections = ParsedSections(completed=["Fixed LAA-1"], in_progress=["Testing LAA-2"])
        text = render_sections(sections)
        assert "## Completed\n- Fixed LAA-1\n" in text
        assert "## In Progress\n- Testing LAA-2\n" in text

    @pytest.mark.parametrize(
        "sections",
        [
            ParsedSections(),
            ParsedSections(
                completed=["Done with LAA-107 and LAA-90", "Merged the PR"],
                in_progress=["Will test TASK-117 today"],
                support="More than 20 minutes",
            ),
            ParsedSections(in_progress=["Testing LAA-2"], support="About 1.5 hours"),
        ],
    )
    def test_render_then_extract_is_stable(self, sections):
        assert extract_sections(render_sections(sections)) == sections

    def test_report_header(self):
        report = render_report(ParsedSections(), "Daily Report - 3/5/2024", datetime(2024, 3, 5))
        assert report.startswith("# Daily Report - 3/5/2024\n**Date:** 2024-03-05\n\n## Completed\n")
