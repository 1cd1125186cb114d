"""Retry, key rotation and passthrough fallback around the client."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from src.event_log import EventLog
from src.translation.client import RateLimitedError, TranslationError
from src.translation.credentials import CredentialPool

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
RATE_LIMIT_BACKOFF_S = 1.0
FAILURE_BACKOFF_S = 2.0


class SupportsCall(Protocol):
    async def call(self, text: str, model_id: str, credential: str) -> str: ...


@dataclass
class TranslationOutcome:
    """Result of a translate attempt sequence."""

    text: str
    translated: bool  # False when ``text`` is the untranslated input
    attempts: int


class RetryingTranslator:
    """Translates text without ever failing.

    Each attempt draws a fresh key from the pool. A rate-limited attempt
    waits ``rate_limit_backoff_s``; any other failure waits
    ``failure_backoff_s``. After ``max_retries`` failed attempts the input
    is returned unchanged and an error event is recorded.

    Args:
        client: Object performing a single translation call.
        pool: Keys to rotate through.
        events: Job event log for warnings and errors.
        max_retries: Attempts per text.
        rate_limit_backoff_s: Wait after a rate-limited attempt.
        failure_backoff_s: Wait after any other failed attempt.
    """

    def __init__(
        self,
        client: SupportsCall,
        pool: CredentialPool,
        events: EventLog | None = None,
        max_retries: int = MAX_RETRIES,
        rate_limit_backoff_s: float = RATE_LIMIT_BACKOFF_S,
        failure_backoff_s: float = FAILURE_BACKOFF_S,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._client = client
        self._pool = pool
        self._events = events or EventLog()
        self._max_retries = max_retries
        self._rate_limit_backoff_s = rate_limit_backoff_s
        self._failure_backoff_s = failure_backoff_s

    async def translate(self, text: str, model_id: str) -> str:
        outcome = await self.translate_with_status(text, model_id)
        return outcome.text

    async def translate_with_status(self, text: str, model_id: str) -> TranslationOutcome:
        """Translate ``text``, reporting whether the result is a fallback.

        Args:
            text: Chunk markup to translate.
            model_id: Model name passed to the client.

        Returns:
            A TranslationOutcome; ``translated`` is False on exhaustion.
        """
        for attempt in range(1, self._max_retries + 1):
            credential = self._pool.next_credential()
            try:
                translated = await self._client.call(text, model_id, credential)
                return TranslationOutcome(text=translated, translated=True, attempts=attempt)
            except RateLimitedError:
                self._events.warning("⚠️ API key rate limited, switching key...")
                delay = self._rate_limit_backoff_s
            except TranslationError as exc:
                self._events.warning(f"Translation request failed (attempt {attempt}): {exc}")
                delay = self._failure_backoff_s

            if attempt < self._max_retries and delay > 0:
                await asyncio.sleep(delay)

        self._events.error(
            f"Translation failed after {self._max_retries} attempt(s); keeping original text"
        )
        return TranslationOutcome(text=text, translated=False, attempts=self._max_retries)
