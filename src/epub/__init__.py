"""EPUB handling: archive access, chunking and reassembly."""

from src.epub.archive import EpubArchive, StructuralDecodeError
from src.epub.chunker import ChunkedChapter, MarkupChunker, Skeleton
from src.epub.reassembler import reassemble, text_direction

__all__ = [
    "ChunkedChapter",
    "EpubArchive",
    "MarkupChunker",
    "Skeleton",
    "StructuralDecodeError",
    "reassemble",
    "text_direction",
]
