"""Structure-aware splitting of chapter markup into translation chunks."""

import logging
import re

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Whitespace that directly follows a closing paragraph, div or heading tag.
# Python lookbehinds must be fixed-width, hence one per tag length.
BLOCK_BOUNDARY = re.compile(
    r"(?:(?<=</p>)|(?<=</div>)|(?<=</h[1-6]>))\s+",
    re.IGNORECASE,
)

BODY_OPEN = re.compile(r"<body(?=[\s>/])[^>]*>", re.IGNORECASE)
BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)
# Regions whose text is not markup
OPAQUE_REGION = re.compile(r"<!--.*?-->|<!\[CDATA\[.*?\]\]>", re.DOTALL)

CHUNK_SEPARATOR = " "


class Skeleton(BaseModel):
    """The document shell around a chapter's body content.

    ``prefix`` runs up to and including the ``<body>`` start tag and
    ``suffix`` starts at ``</body>``. Both are verbatim source text.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str
    suffix: str


class ChunkedChapter(BaseModel):
    """Result of splitting one chapter."""

    model_config = ConfigDict(frozen=True)

    chunks: list[str] = Field(default_factory=list)
    skeleton: Skeleton | None = None

    @property
    def has_skeleton(self) -> bool:
        return self.skeleton is not None


def _has_body(markup: str) -> bool:
    """Whether the markup is well-formed XML with a body element."""
    parser = etree.XMLParser(recover=False, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(markup.encode("utf-8"), parser)
    except (etree.XMLSyntaxError, ValueError):
        return False
    return next(root.iter("{*}body", "body"), None) is not None


def _tag_matches(pattern: re.Pattern, markup: str, start: int = 0) -> list[re.Match]:
    """Matches of a tag pattern, skipping comments and CDATA sections."""
    opaque = [(m.start(), m.end()) for m in OPAQUE_REGION.finditer(markup)]
    return [
        match
        for match in pattern.finditer(markup, start)
        if not any(begin <= match.start() < end for begin, end in opaque)
    ]


def _extract_skeleton(markup: str) -> tuple[Skeleton, str] | None:
    """Cut the markup into skeleton and body inner markup."""
    open_matches = _tag_matches(BODY_OPEN, markup)
    if not open_matches:
        return None
    open_match = open_matches[0]

    open_tag = open_match.group()
    if open_tag.endswith("/>"):
        # <body/> has no content; expand it so a translation can be injected
        prefix = markup[: open_match.start()] + open_tag[:-2].rstrip() + ">"
        return Skeleton(prefix=prefix, suffix="</body>" + markup[open_match.end():]), ""

    close_matches = _tag_matches(BODY_CLOSE, markup, open_match.end())
    if not close_matches:
        return None
    close_start = close_matches[-1].start()

    skeleton = Skeleton(prefix=markup[: open_match.end()], suffix=markup[close_start:])
    return skeleton, markup[open_match.end():close_start]


class MarkupChunker:
    """Splits chapter markup into size-bounded chunks at block boundaries.

    Splits only on whitespace that follows ``</p>``, ``</div>`` or a closing
    heading, so no tag or word is ever cut. Consecutive segments are packed
    into chunks of at most ``max_chunk_size`` characters; a single segment
    larger than the limit becomes its own chunk.

    Args:
        max_chunk_size: Upper bound on chunk length in characters.
    """

    def __init__(self, max_chunk_size: int) -> None:
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        self._max_chunk_size = max_chunk_size

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    def split(self, markup: str) -> ChunkedChapter:
        """Split one chapter's markup.

        Args:
            markup: Full chapter document text.

        Returns:
            The ordered chunks and, when the markup parsed into a document
            with a body, the skeleton to reassemble into. Without a skeleton
            the whole input is a single chunk.
        """
        extracted = _extract_skeleton(markup) if _has_body(markup) else None
        if extracted is None:
            logger.debug("No body skeleton found; translating the whole file as one chunk")
            return ChunkedChapter(chunks=[markup], skeleton=None)

        skeleton, body = extracted
        segments = [segment for segment in BLOCK_BOUNDARY.split(body) if segment]
        return ChunkedChapter(chunks=self.pack(segments), skeleton=skeleton)

    def pack(self, segments: list[str]) -> list[str]:
        """Greedily pack ordered segments into chunks.

        Args:
            segments: Markup pieces in document order.

        Returns:
            Chunks joined with single spaces; whitespace-only chunks dropped.
        """
        chunks: list[str] = []
        buffer: list[str] = []
        length = 0

        for segment in segments:
            added = len(segment) + (len(CHUNK_SEPARATOR) if buffer else 0)
            if buffer and length + added > self._max_chunk_size:
                chunks.append(CHUNK_SEPARATOR.join(buffer))
                buffer, length = [], 0
                added = len(segment)
            buffer.append(segment)
            length += added

        if buffer:
            tail = CHUNK_SEPARATOR.join(buffer)
            if tail.strip():
                chunks.append(tail)

        oversized = sum(1 for chunk in chunks if len(chunk) > self._max_chunk_size)
        if oversized:
            logger.warning(
                "%d chunk(s) exceed max_chunk_size=%d: no block boundary to split at",
                oversized,
                self._max_chunk_size,
            )
        return chunks
