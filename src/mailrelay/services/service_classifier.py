"""Keyword lookup guessing which service sent a message."""

from __future__ import annotations

import re
from typing import Optional, Pattern, Sequence, Tuple

UNKNOWN_SERVICE = "Unknown"

# (service, brand names, nicknames). Declaration order is lookup order.
# Brand names match at the start of a word, so "facebookmail.com" counts.
# Nicknames hide inside ordinary words ("want", "instant", "metadata") and
# only match as whole words.
KNOWN_SERVICES: Tuple[Tuple[str, Sequence[str], Sequence[str]], ...] = (
    ("Facebook", ("facebook",), ("fb", "meta")),
    ("WhatsApp", ("whatsapp",), ("wa",)),
    ("Instagram", ("instagram",), ("insta", "ig")),
    ("Telegram", ("telegram",), ("tg",)),
    ("Google", ("google", "gmail"), ()),
    ("Microsoft", ("microsoft", "outlook", "hotmail"), ()),
    ("Amazon", ("amazon",), ()),
    ("Discord", ("discord",), ()),
)


def _alternation(words: Sequence[str]) -> str:
    return "|".join(re.escape(word) for word in words)


def _compile(names: Sequence[str], nicknames: Sequence[str]) -> Pattern[str]:
    parts = []
    if names:
        parts.append(rf"(?<![a-z0-9])(?:{_alternation(names)})")
    if nicknames:
        parts.append(rf"(?<![a-z0-9])(?:{_alternation(nicknames)})(?![a-z0-9])")
    return re.compile("|".join(parts))


_SERVICE_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = tuple(
    (service, _compile(names, nicknames)) for service, names, nicknames in KNOWN_SERVICES
)


def detect_service(text: Optional[str]) -> str:
    if not text:
        return UNKNOWN_SERVICE
    lowered = text.lower()
    for service, pattern in _SERVICE_PATTERNS:
        if pattern.search(lowered):
            return service
    return UNKNOWN_SERVICE
