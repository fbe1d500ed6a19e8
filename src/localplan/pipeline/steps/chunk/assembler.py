"""
Final assembly of flushed drafts into identified, positioned chunks.
"""

import uuid
from typing import Iterable, List

from ....core.models import Chunk, ChunkDraft


def new_chunk_id() -> str:
    return str(uuid.uuid4())


def assemble_chunks(
    drafts: Iterable[ChunkDraft], source: str, council: str
) -> List[Chunk]:
    """Attach ids, positions and pass-through fields to drafts, in order.

    ``chunk_index`` counts emitted drafts only, so it is dense even when the
    accumulator dropped short buffers along the way.
    """
    return [
        Chunk(
            chunk_id=new_chunk_id(),
            chunk_index=index,
            source=source,
            council=council,
            section=draft.section,
            section_type=draft.section_type,
            page_start=draft.page_start,
            text=draft.text,
            char_count=len(draft.text),
        )
        for index, draft in enumerate(drafts)
    ]
