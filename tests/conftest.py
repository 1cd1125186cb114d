"""Shared fixtures: in-memory EPUB builders and a fake translation client."""

import asyncio
import io
import zipfile
from collections.abc import Callable

import pytest

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def make_xhtml(body: str, lang: str = "en", title: str = "Chapter") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<!DOCTYPE html>\n"
        f'<html xmlns="http://www.w3.org/1999/xhtml" lang="{lang}">\n'
        f"<head><title>{title}</title></head>\n"
        f"<body>{body}</body>\n"
        "</html>\n"
    )


def make_opf(hrefs: list[str]) -> str:
    items = "\n".join(
        f'    <item id="ch{i}" href="{href}" media-type="application/xhtml+xml"/>'
        for i, href in enumerate(hrefs)
    )
    spine = "\n".join(f'    <itemref idref="ch{i}"/>' for i in range(len(hrefs)))
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0">\n'
        "  <manifest>\n"
        '    <item id="css" href="Styles/style.css" media-type="text/css"/>\n'
        f"{items}\n"
        "  </manifest>\n"
        "  <spine>\n"
        f"{spine}\n"
        "  </spine>\n"
        "</package>\n"
    )


def build_epub(
    chapters: dict[str, str],
    opf_path: str = "OEBPS/content.opf",
    include_container: bool = True,
    extra_entries: dict[str, bytes] | None = None,
    opf: str | None = None,
) -> bytes:
    """Build EPUB bytes; ``chapters`` maps OPF-relative hrefs to markup."""
    base_dir = opf_path.rsplit("/", 1)[0] + "/" if "/" in opf_path else ""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        if include_container:
            zf.writestr("META-INF/container.xml", CONTAINER_XML.format(opf_path=opf_path))
        zf.writestr(opf_path, opf if opf is not None else make_opf(list(chapters)))
        zf.writestr(f"{base_dir}Styles/style.css", "p { margin: 0; }")
        for href, markup in chapters.items():
            zf.writestr(f"{base_dir}{href}", markup)
        for name, content in (extra_entries or {}).items():
            zf.writestr(name, content)
    return buffer.getvalue()


def read_entry(epub: bytes, name: str) -> str:
    with zipfile.ZipFile(io.BytesIO(epub)) as zf:
        return zf.read(name).decode("utf-8")


class FakeTranslationClient:
    """Records calls; translates by prefixing ``[AR]``.

    Args:
        fail: Optional hook called with the text before translating; it may
              raise to simulate service errors or a crash.
        delay: Seconds to sleep inside each call.
    """

    def __init__(self, fail: Callable[[str], None] | None = None, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.texts: list[str] = []
        self.credentials: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.timeline: list[tuple[str, str]] = []

    async def call(self, text: str, model_id: str, credential: str) -> str:
        self.texts.append(text)
        self.credentials.append(credential)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.timeline.append(("start", text))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail is not None:
                self.fail(text)
            return f"[AR]{text}"
        finally:
            self.in_flight -= 1
            self.timeline.append(("end", text))


@pytest.fixture
def fake_client() -> FakeTranslationClient:
    return FakeTranslationClient()
