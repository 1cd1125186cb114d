"""Resumable chapter-by-chapter translation driver."""

import logging
from collections.abc import Callable
from enum import Enum

from src.config import CacheConfig, ChunkingConfig, TranslationConfig
from src.epub.archive import EpubArchive
from src.epub.chunker import ChunkedChapter, MarkupChunker
from src.epub.reassembler import reassemble
from src.event_log import EventLog
from src.models.chapter import Chapter
from src.models.chunk import Chunk, TranslatedChunk, build_chunk_key
from src.models.progress import ProgressRecord
from src.storage.cache import ChunkCache
from src.storage.progress import ProgressStore
from src.translation.batcher import run_chapter_chunks
from src.translation.retrying import RetryingTranslator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class JobState(str, Enum):
    """Lifecycle of one ``run`` invocation."""

    IDLE = "idle"
    RESUMING = "resuming"
    TRANSLATING = "translating"
    REASSEMBLING = "reassembling"
    PERSISTING_PROGRESS = "persisting_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineOrchestrator:
    """Translates an archive chapter by chapter, resuming after interruptions.

    For each chapter from the resume point: chunk the markup, translate the
    chunks through the cache and the retrying translator, reassemble, write
    the chapter back into the archive and advance the progress record.
    Chapters run strictly in spine order.

    Args:
        archive: The EPUB being translated.
        document_name: Identity of the document, compared against the
                       stored progress record to decide the resume point.
        translator: Never-failing chunk translator.
        cache: Durable memo of translated chunks.
        progress: Durable resume point.
        translation: Model, language and concurrency settings.
        chunking: Chunk size and cache key settings.
        cache_policy: Whether fallback results are cached.
        events: Job event log.
        on_progress: Called with ``(percent, message)`` before each chapter
                     and once at completion.
    """

    def __init__(
        self,
        archive: EpubArchive,
        document_name: str,
        translator: RetryingTranslator,
        cache: ChunkCache,
        progress: ProgressStore,
        translation: TranslationConfig | None = None,
        chunking: ChunkingConfig | None = None,
        cache_policy: CacheConfig | None = None,
        events: EventLog | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._archive = archive
        self._document_name = document_name
        self._translator = translator
        self._cache = cache
        self._progress = progress
        self._translation = translation or TranslationConfig()
        self._chunking = chunking or ChunkingConfig()
        self._cache_policy = cache_policy or CacheConfig()
        self._events = events or EventLog()
        self._on_progress = on_progress
        self._chunker = MarkupChunker(self._chunking.max_chunk_size)
        self._running = False
        self.state = JobState.IDLE

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self) -> bytes:
        """Translate every remaining chapter and return the final EPUB bytes.

        Raises:
            StructuralDecodeError: The archive lacks a required entry.
            StoreError: The durable store failed.
        """
        if self._running:
            raise RuntimeError("A translation run is already in progress")

        self._running = True
        self._transition(JobState.RESUMING)
        try:
            chapters = self._archive.list_chapters()
            self._events.info(f"✅ Found {len(chapters)} chapter(s).")
            start = await self._resume_point(len(chapters))
            for chapter in chapters[:start]:
                await self._restore_chapter(chapter)

            for chapter in chapters[start:]:
                await self._process_chapter(chapter, len(chapters))

            self._report_progress(100, "Preparing the final file...")
            result = self._archive.finalize()
        except Exception as exc:
            self._transition(JobState.FAILED)
            self._events.error(f"Fatal error: {exc}")
            raise
        finally:
            self._running = False

        self._transition(JobState.COMPLETED)
        self._events.success("🎉 Translation completed successfully!")
        return result

    async def clear_all_state(self) -> None:
        """Forget the progress record and every cached chunk."""
        if self._running:
            raise RuntimeError("Cannot clear state while a translation run is in progress")
        await self._progress.clear()
        await self._cache.clear()
        self._events.info("All saved progress and cached chunks were cleared.")

    async def _resume_point(self, total: int) -> int:
        record = await self._progress.load()
        if record is None or record.document_name != self._document_name:
            return 0

        start = min(record.next_chapter_index, total)
        if start > 0:
            self._events.info(f"⏩ Resuming from chapter {start + 1}")
        return start

    async def _process_chapter(self, chapter: Chapter, total: int) -> None:
        index = chapter.order
        self._transition(JobState.TRANSLATING)
        self._report_progress(
            round(index / total * 100),
            f"Translating chapter {index + 1}/{total}: {chapter.href}",
        )

        chunked, chunks = self._split_chapter(chapter)
        translated = await run_chapter_chunks(
            chunks, self._translation.max_concurrency, self._translate_chunk
        )

        self._transition(JobState.REASSEMBLING)
        markup = reassemble(
            chunked.skeleton,
            [chunk.text for chunk in translated],
            self._translation.target_language,
        )
        self._archive.write_chapter_markup(chapter.path, markup)

        self._transition(JobState.PERSISTING_PROGRESS)
        await self._progress.save(
            ProgressRecord(document_name=self._document_name, next_chapter_index=index + 1)
        )
        cached = sum(1 for chunk in translated if chunk.from_cache)
        logger.info(
            "Chapter %d/%d done: %d chunk(s), %d from cache", index + 1, total, len(chunks), cached
        )

    async def _restore_chapter(self, chapter: Chapter) -> None:
        """Rebuild a chapter completed by an earlier run from cached chunks only.

        The archive is re-read from its source on every invocation, so
        chapters before the resume point must be re-injected. When fallbacks
        are cached, cache misses keep their source text and no remote call
        is made. Otherwise the misses are the uncached fallbacks of an
        earlier run and are translated again.
        """
        chunked, chunks = self._split_chapter(chapter)
        if not self._cache_policy.cache_fallbacks:
            translated = await run_chapter_chunks(
                chunks, self._translation.max_concurrency, self._translate_chunk
            )
            retried = sum(1 for chunk in translated if not chunk.from_cache)
            if retried:
                self._events.info(f"🔁 Retried {retried} untranslated chunk(s) of {chapter.href}")
            self._archive.write_chapter_markup(
                chapter.path,
                reassemble(
                    chunked.skeleton,
                    [chunk.text for chunk in translated],
                    self._translation.target_language,
                ),
            )
            return

        texts: list[str] = []
        missing = 0
        for chunk in chunks:
            cached = await self._cache.get(self._chunk_key(chunk))
            if cached is None:
                missing += 1
                cached = chunk.text
            texts.append(cached)

        if missing:
            self._events.warning(
                f"{missing} chunk(s) of {chapter.href} missing from cache; kept original text"
            )
        self._archive.write_chapter_markup(
            chapter.path,
            reassemble(chunked.skeleton, texts, self._translation.target_language),
        )

    def _split_chapter(self, chapter: Chapter) -> tuple[ChunkedChapter, list[Chunk]]:
        chunked = self._chunker.split(self._archive.read_chapter_markup(chapter.path))
        chunks = [
            Chunk(chapter_path=chapter.path, index=i, text=text)
            for i, text in enumerate(chunked.chunks)
        ]
        return chunked, chunks

    async def _translate_chunk(self, chunk: Chunk) -> TranslatedChunk:
        key = self._chunk_key(chunk)
        cached = await self._cache.get(key)
        if cached is not None:
            return TranslatedChunk(
                chapter_path=chunk.chapter_path,
                index=chunk.index,
                text=cached,
                source_text=chunk.text,
                from_cache=True,
            )

        outcome = await self._translator.translate_with_status(
            chunk.text, self._translation.model_id
        )
        if outcome.translated or self._cache_policy.cache_fallbacks:
            await self._cache.put(key, outcome.text)

        return TranslatedChunk(
            chapter_path=chunk.chapter_path,
            index=chunk.index,
            text=outcome.text,
            source_text=chunk.text,
            fallback=not outcome.translated,
        )

    def _chunk_key(self, chunk: Chunk) -> str:
        if self._chunking.versioned_keys:
            return build_chunk_key(
                chunk.chapter_path,
                chunk.index,
                text=chunk.text,
                max_chunk_size=self._chunking.max_chunk_size,
            )
        return build_chunk_key(chunk.chapter_path, chunk.index)

    def _transition(self, state: JobState) -> None:
        logger.debug("Job state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _report_progress(self, percent: int, message: str) -> None:
        if self._on_progress is not None:
            self._on_progress(percent, message)
