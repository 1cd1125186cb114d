"""Durable resume point of the translation job."""

import logging

from pydantic import ValidationError

from src.models.progress import ProgressRecord
from src.storage.database import PROGRESS_NAMESPACE, SQLiteStore

logger = logging.getLogger(__name__)

# Single record per job, stored under a fixed key.
PROGRESS_KEY = "meta"


class ProgressStore:
    """Reads and overwrites the job's single ProgressRecord."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def load(self) -> ProgressRecord | None:
        """Return the stored record, or None if absent or unreadable."""
        raw = await self._store.get(PROGRESS_NAMESPACE, PROGRESS_KEY)
        if raw is None:
            return None
        try:
            return ProgressRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed progress record: %r", raw[:200])
            return None

    async def save(self, record: ProgressRecord) -> None:
        await self._store.put(PROGRESS_NAMESPACE, PROGRESS_KEY, record.model_dump_json())

    async def clear(self) -> None:
        await self._store.clear(PROGRESS_NAMESPACE)
