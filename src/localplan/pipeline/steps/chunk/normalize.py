"""
Line normalisation for text extracted from PDF pages.
"""

import re
from typing import Iterable

from ....core.models import PageLines

# Ligatures and typographic punctuation that PDF text layers commonly emit
_REPLACEMENTS = (
    ("\ufb01", "fi"),
    ("\ufb02", "fl"),
    ("\u2013", "-"),  # en dash
    ("\u2014", " - "),  # em dash keeps words apart
    ("\u2019", "'"),
)

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_line(raw: str) -> str:
    """Normalise one raw text fragment into a canonical line."""
    for glyph, replacement in _REPLACEMENTS:
        raw = raw.replace(glyph, replacement)
    return collapse_whitespace(raw)


def join_fragments(fragments: Iterable[str]) -> str:
    """Join the fragments that make up one visual line."""
    return normalize_line(" ".join(fragments))


def normalize_page(page_number: int, raw_lines: Iterable[str]) -> PageLines:
    """Normalise every line of a page, dropping lines that end up empty."""
    lines = [line for line in (normalize_line(raw) for raw in raw_lines) if line]
    return PageLines(page_number=page_number, lines=tuple(lines))
