"""Remote translation: client, key rotation, retries and batching."""

from src.translation.batcher import run_chapter_chunks
from src.translation.client import (
    EmptyResponseError,
    RateLimitedError,
    ServiceError,
    TranslationClient,
    TranslationError,
    TransportError,
)
from src.translation.credentials import CredentialPool
from src.translation.retrying import RetryingTranslator, TranslationOutcome

__all__ = [
    "CredentialPool",
    "EmptyResponseError",
    "RateLimitedError",
    "RetryingTranslator",
    "ServiceError",
    "TranslationClient",
    "TranslationError",
    "TranslationOutcome",
    "TransportError",
    "run_chapter_chunks",
]
