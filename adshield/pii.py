"""
PII Detector

Format-based recognition of personally identifiable information.
No lookup database: a value is counted when its shape matches.

Types are scanned in a fixed priority order and each match is masked
before the next type runs, so one value is never counted twice (a
card number is not also read as a phone number).

Only the type and the count leave this module. Matched values are
discarded as soon as they are counted.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from adshield.models import PiiFinding, PiiSummary


def _luhn_valid(candidate: str) -> bool:
    digits = [int(c) for c in candidate if c.isdigit()]
    if not 13 <= len(digits) <= 19:
        return False
    total = 0
    for i, d in enumerate(reversed(digits)):
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def _valid_ipv4(candidate: str) -> bool:
    return all(0 <= int(part) <= 255 for part in candidate.split("."))


# (type, regex, optional validator). Order is the masking priority.
PII_PATTERNS: list[tuple[str, re.Pattern, Optional[Callable[[str], bool]]]] = [
    (
        "email",
        re.compile(
            r"(?<![a-z0-9._%+-])[a-z0-9._%+-]{1,64}@[a-z0-9.-]{1,253}\.[a-z]{2,24}\b",
            re.IGNORECASE,
        ),
        None,
    ),
    (
        "credit_card",
        re.compile(r"(?<!\d)(?:\d[ -]?){12,18}\d(?!\d)"),
        _luhn_valid,
    ),
    (
        "national_id",
        # US SSN shape; area 000/666/9xx is never issued
        re.compile(r"(?<!\d)(?!000|666|9\d\d)\d{3}-(?!00)\d{2}-(?!0000)\d{4}(?!\d)"),
        None,
    ),
    (
        "ip_address",
        re.compile(r"(?<![\d.])(?:\d{1,3}\.){3}\d{1,3}(?![\d.])"),
        _valid_ipv4,
    ),
    (
        "phone",
        re.compile(
            r"(?<![\d+])(?:"
            r"\+\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,4}){2,3}"  # international
            r"|"
            r"(?:1[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}"  # NANP
            r")(?!\d)"
        ),
        None,
    ),
]


def detect(text: str) -> list[PiiFinding]:
    """
    Scan text for PII. Returns one finding per type present, in
    priority order, each with its occurrence count.
    """
    if not text or not text.strip():
        return []

    remaining = text
    findings: list[PiiFinding] = []

    for pii_type, pattern, validator in PII_PATTERNS:
        count = 0
        spans: list[tuple[int, int]] = []
        for m in pattern.finditer(remaining):
            if validator is not None and not validator(m.group(0)):
                continue
            count += 1
            spans.append(m.span())

        if count:
            findings.append(PiiFinding(pii_type=pii_type, count=count))
            remaining = _mask(remaining, spans)

    return findings


def _mask(text: str, spans: list[tuple[int, int]]) -> str:
    """Blank out matched spans, preserving offsets."""
    chars = list(text)
    for start, end in spans:
        chars[start:end] = "\x00" * (end - start)
    return "".join(chars)


def summarize(findings: list[PiiFinding]) -> PiiSummary:
    return PiiSummary(findings=tuple(findings))
