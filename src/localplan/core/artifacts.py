import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from .models import Chunk
from .paths import runs


class ChunkFileError(ValueError):
    """Raised when a chunks.ndjson file cannot be parsed."""


def new_run_id() -> str:
    return f"{datetime.now(timezone.utc).strftime('%Y-%m-%d_%H%M%S')}_{uuid.uuid4().hex[:4]}"


def phase_dir(run_id: str, phase: str, root: Optional[Path] = None) -> Path:
    p = (root or runs()) / run_id / phase
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_chunks(chunks: Iterable[Chunk], path: Path) -> int:
    """Write chunks as NDJSON, one record per line. Returns the count."""
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for chunk in chunks:
            f.write(json.dumps(chunk.to_record(), ensure_ascii=False) + "\n")
            count += 1
    return count


def read_chunks(path: Path) -> List[Chunk]:
    chunks = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                chunks.append(Chunk.from_record(json.loads(line)))
            except (KeyError, TypeError, ValueError) as e:
                raise ChunkFileError(f"{path}:{line_num}: invalid chunk record: {e}") from e
    return chunks
