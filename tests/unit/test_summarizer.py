"""
Unit Tests for ContentSummarizer
================================

Tests for head / key-lines / tail reduction and fast-path truncation.
"""

import pytest

from document_reader.summarizer import (
    HEAD_MARKER,
    MAX_KEY_LINES,
    MIDDLE_MARKER,
    TAIL_MARKER,
    TRUNCATION_NOTICE,
    ContentSummarizer,
    is_key_line,
    truncate,
)


def _long_document(filler_lines: int = 2000) -> str:
    head = "AGREEMENT HEADER: Fund XYZ Private Trust contribution agreement.\n"
    filler = [f"Boilerplate clause {chr(97 + i % 26)} with ordinary wording.\n" for i in range(filler_lines)]
    key = (
        "The Contributor PAN is ABCDE1234F as per records.\n"
        "Correspondence to investor.relations@example-fund.in only.\n"
    )
    tail = "SIGNED by the parties on the last page of this agreement.\n"
    half = filler_lines // 2
    return head + "".join(filler[:half]) + key + "".join(filler[half:]) + tail


# =============================================================================
# Key Line Detection
# =============================================================================


@pytest.mark.unit
class TestKeyLines:
    """Tests for signal-bearing line detection."""

    @pytest.mark.parametrize(
        "line",
        [
            "Capital commitment payable in three instalments",
            "The PAN of the investor",
            "Executed at Mumbai",
            "Reference ABCDE1234F",
            "Signed 12/05/2023",
            "Account 00123456789",
            "write to ops@example.com",
        ],
    )
    def test_key_lines(self, line):
        assert is_key_line(line)

    def test_plain_line_is_not_key(self):
        assert not is_key_line("Ordinary boilerplate wording here")

    def test_short_lines_skipped(self):
        summarizer = ContentSummarizer()
        assert summarizer.key_lines("PAN\nfee\n", 1000) == ""

    def test_key_lines_capped(self):
        summarizer = ContentSummarizer(max_key_lines=5)
        text = "\n".join(f"Payment schedule line {i}" for i in range(50))
        assert len(summarizer.key_lines(text, 100_000).splitlines()) == 5

    def test_default_cap(self):
        summarizer = ContentSummarizer()
        text = "\n".join(f"Payment schedule line {i}" for i in range(1000))
        assert len(summarizer.key_lines(text, 1_000_000).splitlines()) == MAX_KEY_LINES

    def test_key_lines_respect_budget(self):
        summarizer = ContentSummarizer()
        text = "\n".join(f"Payment schedule line {i}" for i in range(100))
        assert len(summarizer.key_lines(text, 120)) <= 120


# =============================================================================
# Reduction
# =============================================================================


@pytest.mark.unit
class TestReduce:
    """Tests for ContentSummarizer.reduce()."""

    @pytest.fixture
    def summarizer(self):
        return ContentSummarizer()

    def test_identity_within_budget(self, summarizer):
        text = "short document"
        assert summarizer.reduce(text, 1000) == text

    def test_identity_at_exact_budget(self, summarizer):
        text = "x" * 500
        assert summarizer.reduce(text, 500) is text

    def test_output_within_budget(self, summarizer):
        text = _long_document()
        for budget in (500, 2_000, 8_000, 30_000):
            assert len(summarizer.reduce(text, budget)) <= budget

    def test_head_and_tail_preserved(self, summarizer):
        text = _long_document()
        budget = 8_000
        reduced = summarizer.reduce(text, budget)

        assert reduced.startswith(HEAD_MARKER)
        head = reduced[len(HEAD_MARKER):reduced.index(MIDDLE_MARKER)]
        tail = reduced[reduced.index(TAIL_MARKER) + len(TAIL_MARKER):]
        assert text.startswith(head)
        assert text.endswith(tail)
        assert "SIGNED by the parties" in tail

    def test_middle_keeps_signal_lines(self, summarizer):
        text = _long_document()
        reduced = summarizer.reduce(text, 4_000)
        middle = reduced[reduced.index(MIDDLE_MARKER):reduced.index(TAIL_MARKER)]
        assert "ABCDE1234F" in middle
        assert "investor.relations@example-fund.in" in middle
        assert "Boilerplate clause" not in middle

    def test_tiny_budget_keeps_head_and_tail(self, summarizer):
        text = "a" * 500 + "z" * 500
        reduced = summarizer.reduce(text, 21)
        assert reduced == "a" * 11 + "z" * 10
        assert text.startswith(reduced[:11])
        assert text.endswith(reduced[11:])


# =============================================================================
# Fast-path Truncation
# =============================================================================


@pytest.mark.unit
class TestTruncate:

    def test_short_text_unchanged(self):
        assert truncate("abc", 10) == "abc"

    def test_long_text_truncated_with_notice(self):
        result = truncate("a" * 100, 10)
        assert result == "a" * 10 + TRUNCATION_NOTICE
