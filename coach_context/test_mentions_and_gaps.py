"""
Mention Detection and Section Gap Tests
=======================================
"""

import pytest

from coach_context.mentions import detect_coach_mention, highlight_mentions
from coach_context.schemas import DocumentSection
from coach_context.section_gaps import find_thin_sections, get_section_gap_info


class TestMentions:

    @pytest.mark.parametrize("content", [
        "@coach can you look at this?",
        "Thanks @Gena",
        "asking my @MENTOR about it",
    ])
    def test_detects_mentions(self, content):
        assert detect_coach_mention(content)

    @pytest.mark.parametrize("content", [
        "my coach said hi",
        "email me at someone@coaching.com",
        "@coaches are great",
    ])
    def test_ignores_non_mentions(self, content):
        assert not detect_coach_mention(content)

    def test_highlight_wraps_each_mention(self):
        assert highlight_mentions("@coach and @Gena, see this") == "**@coach** and **@Gena**, see this"


class TestSectionGaps:

    def test_thin_sections_listed(self):
        sections = [
            DocumentSection(title="Overview", content="Nurse in a busy ER, two kids, recently moved.", sort_order=0),
            DocumentSection(title="Goals", content="", sort_order=1),
            DocumentSection(title="Values", content="   family   ", sort_order=2),
        ]
        assert find_thin_sections(sections) == ["Goals", "Values"]

        gap_info = get_section_gap_info(sections)
        assert "- Goals\n- Values" in gap_info
        assert "Overview" not in gap_info

    def test_no_gaps(self):
        sections = [DocumentSection(title="Overview", content="x" * 30, sort_order=0)]
        assert get_section_gap_info(sections) is None

    def test_no_sections(self):
        assert get_section_gap_info([]) is None
