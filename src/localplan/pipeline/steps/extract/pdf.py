"""
Page-line extraction from Local Plan PDFs.

Decoding is delegated to PyMuPDF. Each text line of each page is rebuilt
from its spans and normalised, giving the ordered PageLines the chunker
consumes.
"""

import json
from pathlib import Path
from typing import List, Union

import fitz  # PyMuPDF
from pydantic import ValidationError

from ....core.logging import log
from ....core.models import PageLines
from ..chunk.normalize import join_fragments, normalize_page


class ExtractionError(RuntimeError):
    """Raised when a document cannot be turned into page lines."""


def source_name(pdf_path: Union[str, Path]) -> str:
    """Document identifier carried on every chunk: the file name."""
    return Path(pdf_path).name


def _page_lines(page: fitz.Page) -> List[str]:
    lines = []
    blocks = page.get_text("dict")["blocks"]

    for block in blocks:
        if block.get("type") != 0:  # Skip image blocks
            continue

        for line in block.get("lines", []):
            text = join_fragments(span.get("text", "") for span in line.get("spans", []))
            if text:
                lines.append(text)

    return lines


def extract_page_lines(pdf_path: Union[str, Path]) -> List[PageLines]:
    """
    Extract normalised lines from every page of a PDF.

    Args:
        pdf_path: Path to the PDF file

    Returns:
        One PageLines per page, 1-based page numbers, in document order
    """
    try:
        doc = fitz.open(str(pdf_path))
    except (RuntimeError, OSError) as e:
        raise ExtractionError(f"Cannot open PDF {pdf_path}: {e}") from e

    pages = []
    with doc:
        if doc.needs_pass:
            raise ExtractionError(f"Cannot read PDF {pdf_path}: password protected")

        try:
            for page_number, page in enumerate(doc, start=1):
                pages.append(normalize_page(page_number, _page_lines(page)))
                log.debug(
                    "extract.page",
                    source=source_name(pdf_path),
                    page=page_number,
                    lines=len(pages[-1].lines),
                )
        except (RuntimeError, ValueError) as e:
            raise ExtractionError(f"Cannot read PDF {pdf_path}: {e}") from e

    log.info("extract.complete", source=source_name(pdf_path), pages=len(pages))
    return pages


def load_page_lines(json_path: Union[str, Path]) -> List[PageLines]:
    """Load pre-extracted pages: a JSON list of {"page_number", "lines"}."""
    try:
        with open(json_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        pages = [PageLines.model_validate(page) for page in data]
    except (OSError, ValueError, TypeError, ValidationError) as e:
        raise ExtractionError(f"Cannot load page lines from {json_path}: {e}") from e

    return [normalize_page(page.page_number, page.lines) for page in pages]
