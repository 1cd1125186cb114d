"""Bounded-concurrency execution of a chapter's chunk translations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.models.chunk import Chunk, TranslatedChunk

logger = logging.getLogger(__name__)

TranslateFn = Callable[[Chunk], Awaitable[TranslatedChunk]]


async def run_chapter_chunks(
    chunks: list[Chunk],
    limit: int,
    translate_fn: TranslateFn,
) -> list[TranslatedChunk]:
    """Translate chunks in consecutive batches of at most ``limit``.

    Each batch runs concurrently and must finish before the next starts,
    so no more than ``limit`` calls are ever in flight.

    Args:
        chunks: Chunks of one chapter, in index order.
        limit: Maximum simultaneous translations.
        translate_fn: Coroutine translating a single chunk.

    Returns:
        Translated chunks in the same order as ``chunks``.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    results: list[TranslatedChunk] = []
    for start in range(0, len(chunks), limit):
        batch = chunks[start:start + limit]
        logger.debug("Translating chunks %d-%d", start, start + len(batch) - 1)
        # gather returns results in argument order regardless of completion order
        results.extend(await asyncio.gather(*(translate_fn(chunk) for chunk in batch)))
    return results
