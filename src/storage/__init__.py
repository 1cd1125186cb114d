"""Durable storage: SQLite key/value store, chunk cache and progress."""

from src.storage.cache import ChunkCache
from src.storage.database import SQLiteStore, StoreError
from src.storage.progress import ProgressStore

__all__ = ["ChunkCache", "ProgressStore", "SQLiteStore", "StoreError"]
