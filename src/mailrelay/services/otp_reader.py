"""Helpers for extracting one-time passwords from unstructured sources."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern, Sequence

# Order matters: the first pattern with any match wins.
DEFAULT_PATTERNS: Sequence[str] = (
    r"(?<!\d)(\d{3,8})",
    r"code[:\s]*(\d{3,8})",
    r"verification code[:\s]*(\d{3,8})",
)


class OtpReader:
    """OTP parser that tries an ordered list of patterns against a text blob.

    The bare-digit pattern also fires on dates, amounts and order numbers, so
    a result is a hint for the reader rather than a verified code.
    """

    def __init__(self, patterns: Iterable[str] = DEFAULT_PATTERNS) -> None:
        self._patterns: list[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in patterns]

    def parse(self, text: Optional[str]) -> Optional[str]:
        if not text:
            return None
        cleaned = text.replace("\u00a0", " ")
        for regex in self._patterns:
            match = regex.search(cleaned)
            if match:
                return match.group(1)
        return None
