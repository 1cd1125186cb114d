"""Durable memo of translated chunks."""

import logging

from src.storage.database import CHUNKS_NAMESPACE, SQLiteStore

logger = logging.getLogger(__name__)


class ChunkCache:
    """Maps a chunk key to its translated text in the ``chunks`` namespace."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def get(self, key: str) -> str | None:
        return await self._store.get(CHUNKS_NAMESPACE, key)

    async def put(self, key: str, text: str) -> None:
        await self._store.put(CHUNKS_NAMESPACE, key, text)
        logger.debug("Cached chunk %s (%d chars)", key, len(text))

    async def clear(self) -> None:
        await self._store.clear(CHUNKS_NAMESPACE)
