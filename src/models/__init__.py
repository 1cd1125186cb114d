"""Data models for the EPUB translation pipeline."""

from src.models.chapter import Chapter
from src.models.chunk import Chunk, TranslatedChunk, build_chunk_key
from src.models.event import EventLevel, JobEvent
from src.models.progress import ProgressRecord

__all__ = [
    "Chapter",
    "Chunk",
    "EventLevel",
    "JobEvent",
    "ProgressRecord",
    "TranslatedChunk",
    "build_chunk_key",
]
