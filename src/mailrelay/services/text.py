"""Flatten HTML mail bodies into plain text for scanning."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def html_to_text(html: Optional[str]) -> str:
    """Return whitespace-collapsed text with all markup removed.

    Never raises: if the markup cannot be parsed the input is returned as-is.
    """
    if not html:
        return ""
    try:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return collapse_whitespace(soup.get_text())
    except Exception:
        return html
