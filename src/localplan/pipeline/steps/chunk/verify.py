"""
Chunk invariant verification.
"""

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence

from ....core.config import SETTINGS, Settings
from ....core.logging import log
from ....core.models import Chunk


def _violation(chunk: Chunk, rule: str, detail: str) -> Dict:
    return {
        "chunk_id": chunk.chunk_id,
        "source": chunk.source,
        "chunk_index": chunk.chunk_index,
        "rule": rule,
        "detail": detail,
    }


def verify_chunks(
    chunks: Sequence[Chunk], settings: Optional[Settings] = None
) -> Dict:
    """
    Check emitted chunks against the chunking invariants.

    Chunks are grouped by source document; within each document the
    chunk_index values must be exactly 0..N-1 in file order.

    Args:
        chunks: Chunks in the order they were written
        settings: Thresholds to check against (defaults to SETTINGS)

    Returns:
        Report dict with status PASS/FAIL, per-rule counts and violations
    """
    settings = settings or SETTINGS
    violations: List[Dict] = []

    by_source: Dict[str, List[Chunk]] = defaultdict(list)
    for chunk in chunks:
        by_source[chunk.source].append(chunk)

    for source, doc_chunks in by_source.items():
        indices = [c.chunk_index for c in doc_chunks]
        if indices != list(range(len(doc_chunks))):
            violations.append(
                {
                    "chunk_id": None,
                    "source": source,
                    "chunk_index": None,
                    "rule": "dense_index",
                    "detail": f"chunk_index sequence {indices[:10]} is not 0..{len(doc_chunks) - 1}",
                }
            )

    for chunk in chunks:
        text = chunk.text
        if chunk.char_count != len(text):
            violations.append(
                _violation(chunk, "char_count", f"char_count={chunk.char_count} but len(text)={len(text)}")
            )
        if len(text) < settings.MIN_CHUNK_CHARS:
            violations.append(
                _violation(chunk, "too_short", f"{len(text)} < MIN_CHUNK_CHARS={settings.MIN_CHUNK_CHARS}")
            )
        if text != text.strip():
            violations.append(_violation(chunk, "edge_whitespace", "leading or trailing whitespace"))
        if "  " in text:
            violations.append(_violation(chunk, "double_space", "text contains consecutive spaces"))

    id_counts = Counter(c.chunk_id for c in chunks)
    for chunk_id, count in id_counts.items():
        if count > 1:
            violations.append(
                {
                    "chunk_id": chunk_id,
                    "source": None,
                    "chunk_index": None,
                    "rule": "duplicate_id",
                    "detail": f"chunk_id appears {count} times",
                }
            )

    for v in violations[:20]:
        log.warning("verify.violation", **v)

    rule_counts = Counter(v["rule"] for v in violations)
    return {
        "status": "PASS" if not violations else "FAIL",
        "total_chunks": len(chunks),
        "documents": len(by_source),
        "rule_counts": dict(rule_counts),
        "violations": violations,
    }
