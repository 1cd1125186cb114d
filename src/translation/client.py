"""Single-call client for the Gemini ``generateContent`` endpoint."""

import logging
import re

import httpx

from src.translation.prompts import build_translation_prompt

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"

# Leading/trailing markdown fences a model may wrap its answer in
LEADING_FENCE = re.compile(r"^\s*```(?:html|xhtml|xml)?[ \t]*\n?", re.IGNORECASE)
TRAILING_FENCE = re.compile(r"\n?```\s*$")

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_NONE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


class TranslationError(Exception):
    """Base class of failures of a single translation call."""


class RateLimitedError(TranslationError):
    """The service rejected the call for the credential's rate limit (HTTP 429)."""


class ServiceError(TranslationError):
    """The service answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(TranslationError):
    """The service answered without usable text."""


class TransportError(TranslationError):
    """Network failure or timeout before a usable answer arrived."""


def sanitize_response(text: str) -> str:
    """Strip markdown code fences around the model's answer."""
    text = LEADING_FENCE.sub("", text, count=1)
    text = TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if error:
        return str(error)
    return response.reason_phrase


def _extract_text(payload: dict) -> str | None:
    """Concatenated text parts of the first candidate; None if the shape is unexpected."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return None
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    return "".join(texts) or None


class TranslationClient:
    """Performs one translation request, classifying every failure.

    Args:
        api_url: Base URL of the models endpoint.
        source_language: Language tag of the book.
        target_language: Language tag to translate into.
        timeout: Request timeout in seconds.
        http_client: Optional preconfigured ``httpx.AsyncClient``; one is
                     created (and owned) when omitted.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        source_language: str = "en",
        target_language: str = "ar",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.source_language = source_language
        self.target_language = target_language
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "TranslationClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def call(self, text: str, model_id: str, credential: str) -> str:
        """Translate ``text`` with one request.

        Args:
            text: Chunk markup to translate.
            model_id: Model name, e.g. ``gemini-2.5-flash``.
            credential: API key used for this attempt.

        Returns:
            The sanitized translated text.

        Raises:
            RateLimitedError: HTTP 429.
            ServiceError: Any other non-2xx status.
            EmptyResponseError: No candidate text in the answer.
            TransportError: Timeout, connection failure or unreadable body.
        """
        prompt = build_translation_prompt(text, self.source_language, self.target_language)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "safetySettings": SAFETY_SETTINGS,
        }

        try:
            response = await self._get_client().post(
                f"{self.api_url}/{model_id}:generateContent",
                json=payload,
                headers={"x-goog-api-key": credential},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError("Rate limit reached for the current API key")
        if not response.is_success:
            raise ServiceError(_error_message(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError("Response body is not valid JSON") from exc

        translated = _extract_text(data) if isinstance(data, dict) else None
        if not translated or not translated.strip():
            raise EmptyResponseError("Empty response from the model")

        return sanitize_response(translated)

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
