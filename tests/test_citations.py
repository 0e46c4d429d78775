"""Tests for citation marker stripping."""

import pytest

from leadwidget.assistant.citations import CITATION_PATTERN, clean_reply, strip_citations


class TestStripCitations:
    def test_marker_and_leading_space_removed(self):
        assert strip_citations("The U-value is 1.3【4:2†source】.") == "The U-value is 1.3."
        assert strip_citations("Yes 【12:0†source】it is.") == "Yesit is."

    def test_multiple_markers(self):
        text = "Doors【1:0†source】 and windows【1:1†source】 both qualify."
        assert strip_citations(text) == "Doors and windows both qualify."

    @pytest.mark.parametrize("text", [
        "The U-value is 1.3【4:2†source】.",
        "a【1†source】【2†source】b",
        "plain text",
        "【x†source】",
    ])
    def test_idempotent(self, text):
        once = strip_citations(text)
        assert strip_citations(once) == once

    @pytest.mark.parametrize("text", [
        "No markers here.",
        "Brackets 【kept】 when not a source marker.",
        "A dagger † on its own stays.",
        "[4:2†source] uses ASCII brackets so it stays.",
    ])
    def test_non_marker_text_untouched(self, text):
        assert strip_citations(text) == text

    def test_pattern_is_exact(self):
        assert CITATION_PATTERN.pattern == r"\s*【[^】†]+†source】"


class TestCleanReply:
    def test_strips_whitespace(self):
        assert clean_reply("  Hello【0†source】  ") == "Hello"

    def test_marker_only_reply_is_empty(self):
        assert clean_reply("【3:1†source】") == ""
