"""
Heading detection for UK Local Plan documents.

Headings change the section context for all following content until the
next heading. Patterns are evaluated in order and the first match wins.
"""

import re
from typing import Optional, Pattern, Tuple

from ....core.models import HeadingMatch, SectionType

HEADING_MIN_CHARS = 4
HEADING_MAX_CHARS = 130

HEADING_PATTERNS: Tuple[Tuple[SectionType, Pattern[str]], ...] = (
    # "Policy H1:", "Policy SA(BE) 1:", "Policy DH(a)1:"
    (
        SectionType.POLICY,
        re.compile(r"^Policy\s+[A-Z][A-Z\d()]*\s*\d*[a-z]?\s*:", re.IGNORECASE | re.ASCII),
    ),
    # "Appendix 1", "APPENDIX A:"
    (
        SectionType.APPENDIX,
        re.compile(r"^Appendix\s+[A-Z0-9]", re.IGNORECASE | re.ASCII),
    ),
    # "1 INTRODUCTION", "2 SPATIAL STRATEGY" (whole line)
    (
        SectionType.CHAPTER,
        re.compile(r"^\d{1,2}\s+[A-Z][A-Z ]{3,60}$", re.ASCII),
    ),
    # "CHAPTER 1:", "PART A:", "SECTION 2 -"
    (
        SectionType.CHAPTER,
        re.compile(r"^(CHAPTER|PART|SECTION)\s+[A-Z0-9]", re.IGNORECASE | re.ASCII),
    ),
    # "1.1 Background", "2.3.4 Policy Context" sit beneath a chapter
    (
        SectionType.SUPPORTING_TEXT,
        re.compile(r"^\d+\.\d+(\.\d+)?\s+[A-Z][a-z]", re.ASCII),
    ),
)

_PAGE_NUMBER = re.compile(r"^\d+$", re.ASCII)


def classify_heading(
    line: str,
    min_chars: int = HEADING_MIN_CHARS,
    max_chars: int = HEADING_MAX_CHARS,
) -> Optional[HeadingMatch]:
    """Return the heading match for a normalised line, or None."""
    text = line.strip()
    if len(text) < min_chars or len(text) > max_chars:
        return None

    for section_type, pattern in HEADING_PATTERNS:
        if pattern.search(text):
            return HeadingMatch(section_type=section_type, text=text)
    return None


def is_noise_line(line: str, min_chars: int = 4) -> bool:
    """Bare page numbers and fragments too short to carry content."""
    text = line.strip()
    return bool(_PAGE_NUMBER.match(text)) or len(text) < min_chars
