from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SectionType(str, Enum):
    """Coarse structural role of the heading currently in effect."""

    POLICY = "policy"
    APPENDIX = "appendix"
    CHAPTER = "chapter"
    SUPPORTING_TEXT = "supporting-text"


class PageLines(BaseModel):
    """One decoded page: its 1-based number and lines in reading order."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(..., ge=1)
    lines: tuple[str, ...] = ()


class HeadingMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    section_type: SectionType
    text: str


class ChunkDraft(BaseModel):
    """A flushed buffer before ids and positions are attached."""

    model_config = ConfigDict(frozen=True)

    section: str
    section_type: SectionType
    page_start: int
    text: str


class Chunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk_id: str
    chunk_index: int
    source: str
    council: str
    section: str
    section_type: SectionType
    page_start: int
    text: str
    char_count: int

    def to_record(self) -> dict[str, Any]:
        """Downstream record shape (camelCase keys)."""
        return {
            "chunkId": self.chunk_id,
            "chunkIndex": self.chunk_index,
            "source": self.source,
            "council": self.council,
            "section": self.section,
            "sectionType": self.section_type.value,
            "pageStart": self.page_start,
            "text": self.text,
            "charCount": self.char_count,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Chunk":
        return cls(
            chunk_id=record["chunkId"],
            chunk_index=record["chunkIndex"],
            source=record["source"],
            council=record["council"],
            section=record["section"],
            section_type=SectionType(record["sectionType"]),
            page_start=record["pageStart"],
            text=record["text"],
            char_count=record["charCount"],
        )
