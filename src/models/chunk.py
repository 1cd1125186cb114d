"""Chunk data models."""

import hashlib

from pydantic import BaseModel, ConfigDict

CHUNK_KEY_SEPARATOR = "_chk_"


def build_chunk_key(
    chapter_path: str,
    index: int,
    text: str | None = None,
    max_chunk_size: int | None = None,
) -> str:
    """Build the cache key for a chunk.

    Without ``text`` and ``max_chunk_size`` the key has the plain
    ``"<chapterPath>_chk_<index>"`` layout. Passing them appends the chunk
    size and a short content digest, so entries written under different
    chunking parameters never collide.

    Args:
        chapter_path: Path of the chapter inside the archive.
        index: Zero-based chunk index within the chapter.
        text: Source text of the chunk, hashed into the key when given.
        max_chunk_size: Chunking parameter the chunk was produced with.

    Returns:
        The cache key string.
    """
    key = f"{chapter_path}{CHUNK_KEY_SEPARATOR}{index}"
    if max_chunk_size is not None:
        key += f"_s{max_chunk_size}"
    if text is not None:
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:12]
        key += f"_{digest}"
    return key


class Chunk(BaseModel):
    """A size-bounded slice of one chapter's body markup."""

    model_config = ConfigDict(frozen=True)

    chapter_path: str
    index: int
    text: str


class TranslatedChunk(Chunk):
    """A chunk whose text is the translation, or the source on fallback."""

    source_text: str
    from_cache: bool = False
    fallback: bool = False
