"""
Chunking step for the Local Plan pipeline.

This package turns decoded page lines into retrieval chunks:
- Line normalisation (ligatures, dashes, quotes, whitespace)
- Ordered heading classification (policy, appendix, chapter, supporting-text)
- A section-aware accumulator with hard size and noise thresholds
- Assembly with dense chunk indices and unique ids
- Invariant verification over written chunks
"""

from .assembler import assemble_chunks
from .engine import ChunkAccumulator, ChunkState, chunk_pages
from .headings import HEADING_PATTERNS, classify_heading, is_noise_line
from .normalize import join_fragments, normalize_line, normalize_page
from .verify import verify_chunks

__all__ = [
    "ChunkAccumulator",
    "ChunkState",
    "HEADING_PATTERNS",
    "assemble_chunks",
    "chunk_pages",
    "classify_heading",
    "is_noise_line",
    "join_fragments",
    "normalize_line",
    "normalize_page",
    "verify_chunks",
]
