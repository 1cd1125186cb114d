"""EPUB container access: spine resolution and chapter read/write."""

import io
import logging
import posixpath
import re
import zipfile
from pathlib import Path
from urllib.parse import unquote

import chardet
from bs4 import BeautifulSoup

from src.models.chapter import Chapter

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
MIMETYPE_PATH = "mimetype"

# Spine entries with these extensions hold chapter markup
CHAPTER_EXTENSIONS = re.compile(r"\.(html|xhtml|htm|xml)$", re.IGNORECASE)


class StructuralDecodeError(Exception):
    """The archive is corrupt or lacks a required structural entry."""


def decode_markup(raw_bytes: bytes, name: str = "") -> str:
    """Decode chapter bytes, trying UTF-8 first and chardet as fallback.

    Args:
        raw_bytes: The raw entry content.
        name: Entry name, used for log messages.

    Returns:
        The decoded text.
    """
    try:
        return raw_bytes.decode("utf-8")
    except UnicodeDecodeError:
        pass

    detected = chardet.detect(raw_bytes)
    encoding = detected.get("encoding") or "utf-8"
    confidence = detected.get("confidence", 0)

    if confidence < 0.7:
        logger.warning(
            "Low confidence encoding detection for %s: %s (%.0f%%)",
            name,
            encoding,
            confidence * 100,
        )

    try:
        return raw_bytes.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.error("Failed to decode entry: %s", name)
        return raw_bytes.decode("utf-8", errors="replace")


class EpubArchive:
    """An EPUB held in memory.

    Entries are kept in their original order so that ``finalize`` produces
    an archive equivalent to the input apart from rewritten chapters.

    Args:
        entries: Mapping of entry name to content, in archive order.
    """

    def __init__(self, entries: dict[str, bytes]) -> None:
        self._entries = entries
        self._chapters: list[Chapter] | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "EpubArchive":
        """Load an archive from raw zip bytes.

        Raises:
            StructuralDecodeError: If the data is not a readable zip file.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                entries = {
                    info.filename: zf.read(info)
                    for info in zf.infolist()
                    if not info.is_dir()
                }
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as exc:
            raise StructuralDecodeError(f"Invalid EPUB archive: {exc}") from exc
        return cls(entries)

    @classmethod
    def open(cls, file_path: str | Path) -> "EpubArchive":
        """Load an archive from disk.

        Raises:
            FileNotFoundError: If file_path does not exist.
            StructuralDecodeError: If the file is not a readable zip file.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        logger.info("Opening EPUB %s", path)
        return cls.from_bytes(path.read_bytes())

    def list_chapters(self) -> list[Chapter]:
        """Resolve the spine into an ordered list of chapter entries.

        Returns:
            Chapters in reading order. Non-markup spine entries are skipped.

        Raises:
            StructuralDecodeError: If container.xml or the OPF is missing
                or unusable.
        """
        if self._chapters is None:
            self._chapters = self._resolve_spine()
        return list(self._chapters)

    def read_chapter_markup(self, path: str) -> str:
        """Return the decoded markup of a chapter entry.

        Raises:
            StructuralDecodeError: If the entry does not exist.
        """
        if path not in self._entries:
            raise StructuralDecodeError(f"Chapter entry missing from archive: {path}")
        return decode_markup(self._entries[path], path)

    def write_chapter_markup(self, path: str, markup: str) -> None:
        """Replace a chapter entry's content with UTF-8 encoded markup."""
        self._entries[path] = markup.encode("utf-8")

    def finalize(self) -> bytes:
        """Serialize the archive back into EPUB zip bytes.

        The ``mimetype`` entry is written first and stored uncompressed,
        as EPUB readers expect; everything else is deflated.
        """
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            if MIMETYPE_PATH in self._entries:
                zf.writestr(
                    MIMETYPE_PATH, self._entries[MIMETYPE_PATH], compress_type=zipfile.ZIP_STORED
                )
            for name, content in self._entries.items():
                if name == MIMETYPE_PATH:
                    continue
                zf.writestr(name, content, compress_type=zipfile.ZIP_DEFLATED)
        return buffer.getvalue()

    def _resolve_spine(self) -> list[Chapter]:
        opf_path = self._find_opf_path()
        if opf_path not in self._entries:
            raise StructuralDecodeError(f"OPF file not found at declared path: {opf_path}")
        logger.info("OPF located at %s", opf_path)

        opf = BeautifulSoup(decode_markup(self._entries[opf_path], opf_path), "xml")
        base_dir = posixpath.dirname(opf_path)

        manifest: dict[str, str] = {}
        manifest_tag = opf.find("manifest")
        if manifest_tag is not None:
            for item in manifest_tag.find_all("item"):
                if item.get("id") and item.get("href"):
                    manifest[item["id"]] = item["href"]

        spine_tag = opf.find("spine")
        if spine_tag is None:
            raise StructuralDecodeError(f"OPF has no spine: {opf_path}")

        chapters: list[Chapter] = []
        for ref in spine_tag.find_all("itemref"):
            href = manifest.get(ref.get("idref", ""))
            if not href:
                continue
            full_path = self._resolve_href(base_dir, href)
            if not CHAPTER_EXTENSIONS.search(full_path):
                continue
            chapters.append(Chapter(path=full_path, href=href, order=len(chapters)))

        logger.info("Found %d chapters in spine", len(chapters))
        return chapters

    def _find_opf_path(self) -> str:
        if CONTAINER_PATH not in self._entries:
            raise StructuralDecodeError(f"Invalid EPUB: missing {CONTAINER_PATH}")

        container = BeautifulSoup(
            decode_markup(self._entries[CONTAINER_PATH], CONTAINER_PATH), "xml"
        )
        rootfile = container.find("rootfile")
        if rootfile is None or not rootfile.get("full-path"):
            raise StructuralDecodeError("Invalid EPUB: container.xml declares no rootfile")
        return rootfile["full-path"]

    @staticmethod
    def _resolve_href(base_dir: str, href: str) -> str:
        href = unquote(href.split("#", 1)[0])
        if not base_dir:
            return posixpath.normpath(href)
        return posixpath.normpath(posixpath.join(base_dir, href))
