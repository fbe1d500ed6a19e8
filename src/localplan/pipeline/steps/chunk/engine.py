"""
Section-aware chunking engine.

Lines are consumed strictly in document order. Section context carries
forward across pages, so a heading on page N governs content on page N+1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ....core.config import SETTINGS, Settings, check_chunk_limits
from ....core.logging import log
from ....core.models import Chunk, ChunkDraft, PageLines, SectionType
from .assembler import assemble_chunks
from .headings import classify_heading, is_noise_line
from .normalize import collapse_whitespace, normalize_line

PREAMBLE_SECTION = "Preamble"


@dataclass
class ChunkState:
    """The single open chunk plus the section context it belongs to."""

    section: str = PREAMBLE_SECTION
    section_type: SectionType = SectionType.SUPPORTING_TEXT
    buffer: str = ""
    buffer_page: int = 1


@dataclass
class ChunkAccumulator:
    """
    Explicit state machine behind feed() / flush() / final_flush().

    One instance per document. Emitted drafts collect in ``drafts`` in the
    order they were flushed.
    """

    settings: Settings = field(default_factory=lambda: SETTINGS)
    start_page: int = 1
    max_chars: Optional[int] = None
    min_chars: Optional[int] = None
    drafts: List[ChunkDraft] = field(default_factory=list)
    state: ChunkState = field(init=False)

    def __post_init__(self) -> None:
        if self.max_chars is None:
            self.max_chars = self.settings.MAX_CHUNK_CHARS
        if self.min_chars is None:
            self.min_chars = self.settings.MIN_CHUNK_CHARS
        check_chunk_limits(self.max_chars, self.min_chars)
        self.state = ChunkState(buffer_page=self.start_page)

    def feed(self, line: str, page: int) -> None:
        """Consume one normalised line found on ``page``."""
        heading = classify_heading(
            line,
            min_chars=self.settings.HEADING_MIN_CHARS,
            max_chars=self.settings.HEADING_MAX_CHARS,
        )
        if heading:
            self.flush(page)
            self.state.section = heading.text
            self.state.section_type = heading.section_type
            self.state.buffer_page = page
            return

        if is_noise_line(line, self.settings.NOISE_MIN_CHARS):
            return

        buffer = self.state.buffer
        if len(buffer) + len(line) + 1 > self.max_chars:
            self.flush(page)
            buffer = self.state.buffer

        self.state.buffer = f"{buffer} {line}" if buffer else line

    def flush(self, reference_page: int) -> Optional[ChunkDraft]:
        """
        Close the open buffer.

        The buffer becomes a draft when it is long enough, otherwise it is
        dropped. Either way the next buffer starts at ``reference_page``.
        """
        text = collapse_whitespace(self.state.buffer)
        draft = None

        if len(text) >= self.min_chars:
            draft = ChunkDraft(
                section=self.state.section,
                section_type=self.state.section_type,
                page_start=self.state.buffer_page,
                text=text,
            )
            self.drafts.append(draft)
            log.debug(
                "chunk.flush",
                section=draft.section,
                page_start=draft.page_start,
                char_count=len(text),
            )
        elif text:
            log.debug(
                "chunk.discard",
                section=self.state.section,
                char_count=len(text),
            )

        self.state.buffer = ""
        self.state.buffer_page = reference_page
        return draft

    def final_flush(self, last_page: int) -> Optional[ChunkDraft]:
        """End of stream."""
        return self.flush(last_page)


def chunk_pages(
    pages: Iterable[PageLines],
    source: str,
    council: str,
    settings: Optional[Settings] = None,
) -> List[Chunk]:
    """
    Chunk one document.

    Args:
        pages: Decoded pages in reading order
        source: Document identifier (usually the PDF file name)
        council: Owning authority, passed through to every chunk
        settings: Threshold configuration (defaults to SETTINGS)

    Returns:
        Ordered chunks with dense zero-based chunk_index values
    """
    settings = settings or SETTINGS
    pages = list(pages)

    accumulator = ChunkAccumulator(
        settings=settings,
        start_page=pages[0].page_number if pages else 1,
    )

    for page in pages:
        for raw in page.lines:
            line = normalize_line(raw)
            if line:
                accumulator.feed(line, page.page_number)

    accumulator.final_flush(pages[-1].page_number if pages else 1)

    return assemble_chunks(accumulator.drafts, source=source, council=council)
