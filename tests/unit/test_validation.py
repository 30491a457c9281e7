"""
Tests for input sanitization (epic_router/utils/validation.py).

Covers:
  - Control character stripping
  - Free-text cleaning and truncation
  - Label / assignee normalization
  - Issue number coercion
"""

import pytest

from epic_router.utils.validation import (
    MAX_BODY_LENGTH,
    MAX_NAME_COUNT,
    MAX_NAME_LENGTH,
    MAX_TITLE_LENGTH,
    clean_text,
    coerce_issue_number,
    normalize_names,
    strip_control_characters,
)


# ---------------------------------------------------------------------------
# strip_control_characters
# ---------------------------------------------------------------------------


class TestStripControlCharacters:

    def test_normal_text_unchanged(self):
        assert strip_control_characters("hello world") == "hello world"

    def test_preserves_whitespace_controls(self):
        assert strip_control_characters("a\tb\nc\r\n") == "a\tb\nc\r\n"

    def test_removes_null_and_escape(self):
        assert strip_control_characters("he\x00llo\x1b") == "hello"

    def test_removes_delete(self):
        assert strip_control_characters("abc\x7f") == "abc"


# ---------------------------------------------------------------------------
# clean_text
# ---------------------------------------------------------------------------


class TestCleanText:

    def test_none_becomes_empty(self):
        assert clean_text(None, MAX_TITLE_LENGTH) == ""

    def test_strips_whitespace(self):
        assert clean_text("  Setup  ", MAX_TITLE_LENGTH) == "Setup"

    def test_non_string_is_converted(self):
        assert clean_text(123, MAX_TITLE_LENGTH) == "123"

    def test_truncates_title(self):
        assert len(clean_text("x" * (MAX_TITLE_LENGTH + 50), MAX_TITLE_LENGTH)) == MAX_TITLE_LENGTH

    def test_truncates_body(self):
        assert len(clean_text("y" * (MAX_BODY_LENGTH + 1), MAX_BODY_LENGTH)) == MAX_BODY_LENGTH

    def test_unicode_preserved(self):
        assert clean_text("Intégration 🚀", MAX_TITLE_LENGTH) == "Intégration 🚀"


# ---------------------------------------------------------------------------
# normalize_names
# ---------------------------------------------------------------------------


class TestNormalizeNames:

    def test_none_and_empty(self):
        assert normalize_names(None) == ()
        assert normalize_names([]) == ()

    def test_order_preserved(self):
        assert normalize_names(["setup", "infrastructure", "foundation"]) == (
            "setup",
            "infrastructure",
            "foundation",
        )

    def test_case_insensitive_dedupe_keeps_first_spelling(self):
        assert normalize_names(["Epic", "epic", "EPIC", "ui"]) == ("Epic", "ui")

    def test_empty_entries_dropped(self):
        assert normalize_names(["", "  ", None, "bug"]) == ("bug",)

    def test_single_string_wrapped(self):
        assert normalize_names("critical") == ("critical",)

    def test_non_iterable_wrapped(self):
        assert normalize_names(5) == ("5",)

    def test_long_name_clipped(self):
        (name,) = normalize_names(["z" * (MAX_NAME_LENGTH + 10)])
        assert len(name) == MAX_NAME_LENGTH

    def test_count_limited(self):
        names = normalize_names([f"label-{i}" for i in range(MAX_NAME_COUNT + 20)])
        assert len(names) == MAX_NAME_COUNT


# ---------------------------------------------------------------------------
# coerce_issue_number
# ---------------------------------------------------------------------------


class TestCoerceIssueNumber:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (42, 42),
            (-1, -1),
            ("17", 17),
            ("#128", 128),
            (" 9 ", 9),
            (12.0, 12),
            (12.5, -1),
            ("abc", -1),
            (None, -1),
            (True, -1),
            ([], -1),
        ],
    )
    def test_coercion(self, raw, expected):
        assert coerce_issue_number(raw) == expected
