"""Wiring of a complete translation job from configuration."""

import logging
from pathlib import Path

from src.config import AppConfig
from src.epub.archive import EpubArchive
from src.event_log import EventListener, EventLog
from src.pipeline.orchestrator import PipelineOrchestrator, ProgressCallback
from src.storage.cache import ChunkCache
from src.storage.database import SQLiteStore
from src.storage.progress import ProgressStore
from src.translation.client import TranslationClient
from src.translation.credentials import CredentialPool
from src.translation.retrying import RetryingTranslator

logger = logging.getLogger(__name__)


def default_output_path(config: AppConfig, epub_path: Path) -> Path:
    """``<output_dir>/<stem>_<LANG>.epub`` for the configured target language."""
    suffix = config.translation.target_language.upper()
    return Path(config.storage.output_dir) / f"{epub_path.stem}_{suffix}.epub"


async def run_translation_job(
    config: AppConfig,
    epub_path: str | Path,
    output_path: str | Path | None = None,
    on_event: EventListener | None = None,
    on_progress: ProgressCallback | None = None,
) -> Path:
    """Translate an EPUB file, resuming from any saved progress.

    Args:
        config: Application configuration, including the API keys.
        epub_path: Source EPUB file.
        output_path: Destination; defaults to ``default_output_path``.
        on_event: Receives each job event as it is emitted.
        on_progress: Receives ``(percent, message)`` progress signals.

    Returns:
        Path of the written translated EPUB.

    Raises:
        ValueError: If no API key is configured.
        FileNotFoundError: If epub_path does not exist.
        StructuralDecodeError: If the EPUB is corrupt or incomplete.
    """
    source = Path(epub_path)
    pool = CredentialPool(config.api_keys)
    archive = EpubArchive.open(source)
    events = EventLog(on_event)
    store = SQLiteStore(config.storage.sqlite_path)

    settings = config.translation
    async with TranslationClient(
        api_url=settings.api_url,
        source_language=settings.source_language,
        target_language=settings.target_language,
        timeout=settings.request_timeout_s,
    ) as client:
        translator = RetryingTranslator(
            client,
            pool,
            events=events,
            max_retries=settings.max_retries,
            rate_limit_backoff_s=settings.rate_limit_backoff_s,
            failure_backoff_s=settings.failure_backoff_s,
        )
        orchestrator = PipelineOrchestrator(
            archive=archive,
            document_name=source.name,
            translator=translator,
            cache=ChunkCache(store),
            progress=ProgressStore(store),
            translation=settings,
            chunking=config.chunking,
            cache_policy=config.cache,
            events=events,
            on_progress=on_progress,
        )
        result = await orchestrator.run()

    destination = Path(output_path) if output_path else default_output_path(config, source)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(result)
    logger.info("Wrote translated EPUB to %s", destination)
    return destination


async def clear_all_state(config: AppConfig) -> None:
    """Wipe the progress record and every cached chunk."""
    await SQLiteStore(config.storage.sqlite_path).clear_all()
