import concurrent.futures
import json
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..core.artifacts import new_run_id, phase_dir, write_chunks
from ..core.config import SETTINGS, Settings
from ..core.logging import log
from ..core.models import Chunk
from ..core.paths import runs
from .steps.chunk.engine import chunk_pages
from .steps.extract.pdf import (
    ExtractionError,
    extract_page_lines,
    load_page_lines,
    source_name,
)


class DuplicateSourceError(ValueError):
    """Raised when two jobs would write chunks under the same source name."""


@dataclass(frozen=True)
class DocumentJob:
    """One Local Plan to chunk and the authority that owns it."""

    path: Path
    council: str
    pages_json: bool = False  # path holds pre-extracted page lines


@dataclass
class DocumentResult:
    job: DocumentJob
    source: str
    chunks: List[Chunk] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def chunk_document_file(
    job: DocumentJob, settings: Optional[Settings] = None
) -> DocumentResult:
    """Extract and chunk a single document, capturing extraction failures."""
    source = source_name(job.path)
    try:
        if job.pages_json:
            pages = load_page_lines(job.path)
        else:
            pages = extract_page_lines(job.path)
    except ExtractionError as e:
        log.error("chunk.document_failed", source=source, error=str(e))
        return DocumentResult(job=job, source=source, error=str(e))

    chunks = chunk_pages(pages, source=source, council=job.council, settings=settings)
    log.info(
        "chunk.document",
        source=source,
        council=job.council,
        pages=len(pages),
        chunks=len(chunks),
    )
    return DocumentResult(job=job, source=source, chunks=chunks)


def chunk_documents(
    jobs: Sequence[DocumentJob],
    workers: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> List[DocumentResult]:
    """
    Chunk several documents in parallel.

    Each document is chunked start-to-finish by one worker with its own
    accumulator. Results come back in the order of ``jobs``.
    """
    settings = settings or SETTINGS
    workers = max(1, workers or settings.CHUNK_WORKERS)

    results: List[Optional[DocumentResult]] = [None] * len(jobs)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_index = {
            executor.submit(chunk_document_file, job, settings): i
            for i, job in enumerate(jobs)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            results[future_to_index[future]] = future.result()

    return [r for r in results if r is not None]


def summarize(results: Sequence[DocumentResult]) -> Dict:
    """Corpus-level statistics for a chunk run."""
    chunks = [c for r in results for c in r.chunks]
    char_counts = [c.char_count for c in chunks]
    section_types = Counter(c.section_type.value for c in chunks)

    summary: Dict = {
        "docCount": len(results),
        "chunkCount": len(chunks),
        "documents": [
            {
                "source": r.source,
                "council": r.job.council,
                "chunks": len(r.chunks),
                "error": r.error,
            }
            for r in results
        ],
        "sectionTypes": dict(section_types),
        "failures": [
            {"source": r.source, "reason": r.error} for r in results if not r.ok
        ],
    }
    if char_counts:
        summary["charStats"] = {
            "min": min(char_counts),
            "max": max(char_counts),
            "mean": round(statistics.mean(char_counts), 1),
            "median": statistics.median(char_counts),
        }
    return summary


def check_unique_sources(jobs: Sequence[DocumentJob]) -> None:
    """Chunk indices are dense per source name, so two jobs may not share one."""
    seen: Dict[str, Path] = {}
    for job in jobs:
        name = source_name(job.path)
        if name in seen:
            raise DuplicateSourceError(
                f"{job.path} and {seen[name]} would both be recorded as source '{name}'"
            )
        seen[name] = job.path


def run_chunk(
    jobs: Sequence[DocumentJob],
    out_dir: Optional[Path] = None,
    run_id: Optional[str] = None,
    workers: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Dict:
    """
    Chunk documents and write run artifacts.

    Artifacts (under ``out_dir`` or runs/<run_id>/chunk/):
    - chunks.ndjson: every chunk, documents in job order
    - chunk_summary.json: counts, char statistics and failures
    """
    settings = settings or SETTINGS
    check_unique_sources(jobs)

    rid = run_id or new_run_id()
    chunk_dir = Path(out_dir) if out_dir else phase_dir(rid, "chunk", root=runs(settings))
    chunk_dir.mkdir(parents=True, exist_ok=True)
    log.info("chunk.run.start", run_id=rid, documents=len(jobs), out=str(chunk_dir))

    results = chunk_documents(jobs, workers=workers, settings=settings)

    chunks_file = chunk_dir / "chunks.ndjson"
    write_chunks((c for r in results for c in r.chunks), chunks_file)

    summary = summarize(results)
    summary.update(
        {
            "run_id": rid,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "artifacts": {
                "chunks_file": str(chunks_file),
                "summary_file": str(chunk_dir / "chunk_summary.json"),
            },
        }
    )
    with open(chunk_dir / "chunk_summary.json", "w") as f:
        json.dump(summary, f, indent=2)

    log.info(
        "chunk.run.end",
        run_id=rid,
        chunks=summary["chunkCount"],
        failures=len(summary["failures"]),
    )
    return summary
