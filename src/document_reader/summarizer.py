"""
Content Summarizer
==================

Reduces oversized document text to a character budget while keeping the
signal-bearing parts: the opening, the closing, and lines from the middle that
carry amounts, identities, dates or contact details.

Budget split (after reserving room for section headers):
    30% head   - verbatim prefix
    40% middle - keyword-dense lines, at most MAX_KEY_LINES
    30% tail   - verbatim suffix
"""

import logging

from document_reader.fields import has_signal_shape

logger = logging.getLogger(__name__)

HEAD_SHARE = 0.3
MIDDLE_SHARE = 0.4
TAIL_SHARE = 0.3
MAX_KEY_LINES = 200
MIN_LINE_LENGTH = 10

HEAD_MARKER = "=== DOCUMENT START ===\n"
MIDDLE_MARKER = "\n\n=== KEY INFORMATION ===\n"
TAIL_MARKER = "\n\n=== DOCUMENT END ===\n"

TRUNCATION_NOTICE = "\n\n[Document truncated for fast analysis]"

KEYWORDS = (
    # Financial
    "rs.", "inr", "₹", "rupees", "lakhs", "crores",
    "amount", "commitment", "contribution", "payment", "fee",
    # Identity
    "pan", "name", "investor", "contributor",
    # Dates
    "date", "dated", "day of", "executed",
    # Contact
    "address", "email", "phone", "mobile",
    # Key terms
    "lock-in", "period", "management", "carried interest",
    "whereas", "witnesseth", "party", "agreement",
)


def is_key_line(line: str) -> bool:
    """True if a line mentions a keyword or contains a PAN/date/digit/email shape."""
    lowered = line.lower()
    if any(keyword in lowered for keyword in KEYWORDS):
        return True
    return has_signal_shape(line)


def truncate(text: str, max_chars: int) -> str:
    """Plain prefix truncation with a notice, for the fast backend."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_NOTICE


class ContentSummarizer:
    """Head / key-lines / tail reduction of long documents."""

    def __init__(self, max_key_lines: int = MAX_KEY_LINES):
        self.max_key_lines = max_key_lines

    def reduce(self, text: str, budget: int) -> str:
        """
        Reduce ``text`` to at most ``budget`` characters.

        Identity when ``len(text) <= budget``. Otherwise the result always
        starts with a verbatim prefix of the input and ends with a verbatim
        suffix of it.
        """
        if len(text) <= budget:
            return text

        overhead = len(HEAD_MARKER) + len(MIDDLE_MARKER) + len(TAIL_MARKER)
        available = budget - overhead
        if available <= 0:
            # No room for section headers: bare head and tail
            tail_size = budget // 2
            return text[:budget - tail_size] + text[len(text) - tail_size:]

        head_size = int(available * HEAD_SHARE)
        middle_size = int(available * MIDDLE_SHARE)
        tail_size = int(available * TAIL_SHARE)
        tail_start = len(text) - tail_size

        logger.info("Smart extracting from %d to %d chars", len(text), budget)

        head = text[:head_size]
        middle = self.key_lines(text[head_size:tail_start], middle_size)
        tail = text[tail_start:] if tail_size else ""

        return f"{HEAD_MARKER}{head}{MIDDLE_MARKER}{middle}{TAIL_MARKER}{tail}"

    def key_lines(self, text: str, max_chars: int) -> str:
        """
        Collect keyword-bearing lines until ``max_chars`` or the line cap.

        Lines shorter than MIN_LINE_LENGTH after stripping are skipped.
        """
        kept: list[str] = []
        used = 0
        for line in text.splitlines():
            if len(kept) >= self.max_key_lines:
                break
            stripped = line.strip()
            if len(stripped) < MIN_LINE_LENGTH or not is_key_line(stripped):
                continue
            cost = len(stripped) + 1  # newline
            if used + cost > max_chars:
                break
            kept.append(stripped)
            used += cost
        return "".join(f"{line}\n" for line in kept)
