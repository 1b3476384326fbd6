"""
Structured Field Patterns
=========================

Pure functions that pull fund-agreement fields (names, PAN numbers, amounts,
dates, periods, fees) out of extracted text.

All patterns live in ``FIELD_PATTERNS`` so they can be tested in isolation and
reused by the content summarizer to spot signal-bearing lines.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|"
    "November|December"
)
_CURRENCY = r"(?:Rs\.?|INR|₹)"

FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "pan": re.compile(r"\b[A-Z]{5}[0-9]{4}[A-Z]\b"),
    "pan_spaced": re.compile(r"\b([A-Z]{5})\s*([0-9]{4})\s*([A-Z])\b"),
    "date_numeric": re.compile(r"\b[0-3]?[0-9][/-][0-1]?[0-9][/-](?:19|20)[0-9]{2}\b"),
    "date_long": re.compile(rf"\b[0-3]?[0-9]\s+(?:{_MONTHS})\s+(?:19|20)[0-9]{{2}}\b"),
    "digit_run": re.compile(r"\d{4,}"),
    "email": re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+"),
    "name_label": re.compile(r"(?i:name)\s*:?\s*([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)"),
    "name_honorific": re.compile(r"(?:Mr\.|Ms\.|Mrs\.)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})"),
    "name_investor": re.compile(r"(?i:investor)[:\s]+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)"),
    "amount_commitment": re.compile(
        rf"(?i)(?:capital\s+commitment|commitment\s+amount|investment\s+amount)"
        rf"\s*:?\s*{_CURRENCY}\s*([0-9,]+(?:\.[0-9]{{2}})?)"
    ),
    "amount_scaled": re.compile(rf"(?i){_CURRENCY}\s*([0-9,]+)\s*(?:crore|lakh|lac|million)"),
    "amount_of": re.compile(rf"(?i)amount\s+of\s+{_CURRENCY}\s*([0-9,]+)"),
    "lock_in_period": re.compile(r"(?i)lock[- ]?in\s+period\s*:?\s*([0-9]+)\s*(year|month)"),
    "management_fee": re.compile(r"(?i)management\s+fee\s*:?\s*([0-9.]+)\s*%"),
    "carried_interest": re.compile(r"(?i)carried\s+interest\s*:?\s*([0-9.]+)\s*%"),
}

# Shapes that mark a line as signal-bearing for summarization
SIGNAL_PATTERNS = ("pan", "date_numeric", "date_long", "digit_run", "email")


def has_signal_shape(line: str) -> bool:
    """True if the line contains a PAN, date, long digit run or email."""
    return any(FIELD_PATTERNS[name].search(line) for name in SIGNAL_PATTERNS)


def find_pan(text: str) -> str | None:
    """First PAN number (XXXXX1234X), accepting a spaced form."""
    match = FIELD_PATTERNS["pan"].search(text)
    if match:
        return match.group(0)
    match = FIELD_PATTERNS["pan_spaced"].search(text)
    if match:
        return "".join(match.groups())
    return None


def is_valid_pan(pan: str | None) -> bool:
    return bool(pan) and len(pan) == 10 and FIELD_PATTERNS["pan"].fullmatch(pan) is not None


def find_name(text: str) -> str | None:
    for key in ("name_label", "name_honorific", "name_investor"):
        match = FIELD_PATTERNS[key].search(text)
        if match:
            return match.group(1).strip()
    return None


def find_amount(text: str) -> str | None:
    """Capital commitment amount including its currency marker."""
    for key in ("amount_commitment", "amount_scaled", "amount_of"):
        match = FIELD_PATTERNS[key].search(text)
        if match:
            return match.group(0).strip()
    return None


def find_dates(text: str) -> list[str]:
    dates = [m.group(0) for m in FIELD_PATTERNS["date_numeric"].finditer(text)]
    dates.extend(m.group(0) for m in FIELD_PATTERNS["date_long"].finditer(text))
    return dates


def find_lock_in_period(text: str) -> str | None:
    match = FIELD_PATTERNS["lock_in_period"].search(text)
    if match:
        return f"{match.group(1)} {match.group(2).lower()}(s)"
    return None


def find_management_fee(text: str) -> str | None:
    match = FIELD_PATTERNS["management_fee"].search(text)
    return f"{match.group(1)}%" if match else None


def find_carried_interest(text: str) -> str | None:
    match = FIELD_PATTERNS["carried_interest"].search(text)
    return f"{match.group(1)}%" if match else None


def find_emails(text: str) -> list[str]:
    return FIELD_PATTERNS["email"].findall(text)


@dataclass
class FundAgreementData:
    """Fields pulled from a fund agreement, with confidence scores (0-100)."""

    contributor_name: str | None = None
    pan_number: str | None = None
    capital_commitment: str | None = None
    lock_in_period: str | None = None
    management_fee: str | None = None
    carried_interest: str | None = None
    agreement_date: str | None = None
    emails: list[str] = field(default_factory=list)

    name_confidence: int = 0
    pan_confidence: int = 0
    amount_confidence: int = 0
    overall_confidence: int = 0

    # (attribute, label) pairs for the core fields
    CORE_FIELDS = (
        ("contributor_name", "Contributor Name"),
        ("pan_number", "PAN Number"),
        ("capital_commitment", "Capital Commitment"),
        ("lock_in_period", "Lock-in Period"),
        ("management_fee", "Management Fee"),
        ("carried_interest", "Carried Interest"),
    )

    @property
    def missing_fields(self) -> list[str]:
        return [label for attr, label in self.CORE_FIELDS if getattr(self, attr) is None]

    def score(self) -> None:
        """Validate fields and compute confidence scores."""
        if self.pan_number is not None:
            self.pan_confidence = 100 if is_valid_pan(self.pan_number) else 50
        if self.capital_commitment is not None:
            has_currency = any(
                marker in self.capital_commitment for marker in ("Rs.", "INR", "₹")
            )
            self.amount_confidence = 90 if has_currency else 70

        scores = []
        if self.contributor_name is not None:
            scores.append(self.name_confidence or 80)
        if self.pan_number is not None:
            scores.append(self.pan_confidence)
        if self.capital_commitment is not None:
            scores.append(self.amount_confidence)
        for attr in ("lock_in_period", "management_fee", "carried_interest"):
            if getattr(self, attr) is not None:
                scores.append(75)
        self.overall_confidence = sum(scores) // len(scores) if scores else 0

    def to_formatted_string(self) -> str:
        lines = [f"=== FUND AGREEMENT DATA (Confidence: {self.overall_confidence}%) ===", ""]
        labelled = (
            ("Contributor", self.contributor_name),
            ("PAN", self.pan_number),
            ("Capital Commitment", self.capital_commitment),
            ("Lock-in Period", self.lock_in_period),
            ("Management Fee", self.management_fee),
            ("Carried Interest", self.carried_interest),
            ("Agreement Date", self.agreement_date),
            ("Email", ", ".join(self.emails) or None),
        )
        lines.extend(f"{label}: {value}" for label, value in labelled if value)
        missing = self.missing_fields
        if missing:
            lines.append("")
            lines.append("Missing Fields:")
            lines.extend(f"- {label}" for label in missing)
        return "\n".join(lines) + "\n"

    def merge(self, extracted: dict[str, Any]) -> None:
        """Fill still-missing fields from a model reply keyed by snake_case names."""
        for attr, _label in self.CORE_FIELDS:
            value = extracted.get(attr)
            if getattr(self, attr) is None and isinstance(value, str) and value.strip():
                setattr(self, attr, value.strip())


def extract_structured_fields(text: str) -> FundAgreementData:
    """Pattern-based extraction of all known fields, scored."""
    dates = find_dates(text)
    data = FundAgreementData(
        contributor_name=find_name(text),
        pan_number=find_pan(text),
        capital_commitment=find_amount(text),
        lock_in_period=find_lock_in_period(text),
        management_fee=find_management_fee(text),
        carried_interest=find_carried_interest(text),
        agreement_date=", ".join(dates) if dates else None,
        emails=find_emails(text),
    )
    data.score()
    return data


def build_enhancement_prompt(missing_fields: list[str]) -> str:
    """Prompt asking a model for the fields patterns could not find."""
    return (
        "The following fields are missing. Extract them if present:\n"
        + "\n".join(missing_fields)
        + "\n\nFor each field found:\n"
        "- Quote the exact text\n"
        "- Indicate which page (if known)\n\n"
        "Format as JSON:\n"
        '{\n    "contributor_name": "...",\n    "pan_number": "...",\n    ...\n}\n\n'
        "If a field is not found, use null.\n"
    )


_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def parse_json_object(text: str) -> dict[str, Any] | None:
    """
    Pull the first JSON object out of a model reply.

    Strips markdown code fences, slices from the first ``{`` to the last ``}``
    and removes trailing commas before parsing. Returns None when nothing
    parseable is found.
    """
    fenced = _CODE_FENCE.search(text)
    if fenced:
        text = fenced.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    candidate = text[start : end + 1]

    for attempt in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            parsed = json.loads(attempt)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    logger.warning("Could not parse JSON object from model reply")
    return None
