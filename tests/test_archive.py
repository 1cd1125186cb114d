"""Tests for EPUB container access."""

import io
import zipfile
from pathlib import Path

import pytest

from conftest import build_epub, make_opf, make_xhtml, read_entry
from src.epub.archive import EpubArchive, StructuralDecodeError, decode_markup


@pytest.fixture
def epub_bytes() -> bytes:
    return build_epub(
        {
            "Text/ch1.xhtml": make_xhtml("<p>One</p>"),
            "Text/ch2.xhtml": make_xhtml("<p>Two</p>"),
        }
    )


class TestListChapters:
    def test_resolves_spine_relative_to_opf(self, epub_bytes: bytes) -> None:
        chapters = EpubArchive.from_bytes(epub_bytes).list_chapters()
        assert [c.path for c in chapters] == ["OEBPS/Text/ch1.xhtml", "OEBPS/Text/ch2.xhtml"]
        assert [c.href for c in chapters] == ["Text/ch1.xhtml", "Text/ch2.xhtml"]
        assert [c.order for c in chapters] == [0, 1]

    def test_spine_order_wins_over_manifest_order(self) -> None:
        opf = (
            '<?xml version="1.0"?>\n'
            '<package xmlns="http://www.idpf.org/2007/opf" version="3.0">\n'
            "<manifest>\n"
            '<item id="a" href="a.xhtml" media-type="application/xhtml+xml"/>\n'
            '<item id="b" href="b.xhtml" media-type="application/xhtml+xml"/>\n'
            "</manifest>\n"
            '<spine><itemref idref="b"/><itemref idref="a"/></spine>\n'
            "</package>\n"
        )
        data = build_epub(
            {"a.xhtml": make_xhtml("<p>A</p>"), "b.xhtml": make_xhtml("<p>B</p>")}, opf=opf
        )
        chapters = EpubArchive.from_bytes(data).list_chapters()
        assert [c.href for c in chapters] == ["b.xhtml", "a.xhtml"]

    def test_opf_at_archive_root(self) -> None:
        data = build_epub({"ch1.html": make_xhtml("<p>One</p>")}, opf_path="content.opf")
        chapters = EpubArchive.from_bytes(data).list_chapters()
        assert [c.path for c in chapters] == ["ch1.html"]

    def test_skips_non_markup_spine_entries(self) -> None:
        opf = make_opf(["Text/ch1.xhtml", "Images/cover.png"])
        data = build_epub(
            {"Text/ch1.xhtml": make_xhtml("<p>One</p>")},
            opf=opf,
            extra_entries={"OEBPS/Images/cover.png": b"\x89PNG"},
        )
        chapters = EpubArchive.from_bytes(data).list_chapters()
        assert [c.href for c in chapters] == ["Text/ch1.xhtml"]

    def test_unquotes_href_and_drops_fragment(self) -> None:
        opf = make_opf(["Text/chapter%201.xhtml#start"])
        data = build_epub({"Text/chapter 1.xhtml": make_xhtml("<p>One</p>")}, opf=opf)
        archive = EpubArchive.from_bytes(data)
        chapters = archive.list_chapters()
        assert chapters[0].path == "OEBPS/Text/chapter 1.xhtml"
        assert "<p>One</p>" in archive.read_chapter_markup(chapters[0].path)

    def test_missing_container_raises(self) -> None:
        data = build_epub({"ch1.xhtml": make_xhtml("<p>x</p>")}, include_container=False)
        with pytest.raises(StructuralDecodeError, match="container.xml"):
            EpubArchive.from_bytes(data).list_chapters()

    def test_missing_opf_raises(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr(
                "META-INF/container.xml",
                '<container><rootfiles><rootfile full-path="OEBPS/missing.opf"/>'
                "</rootfiles></container>",
            )
        with pytest.raises(StructuralDecodeError, match="OPF"):
            EpubArchive.from_bytes(buffer.getvalue()).list_chapters()

    def test_container_without_rootfile_raises(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("META-INF/container.xml", "<container><rootfiles/></container>")
        with pytest.raises(StructuralDecodeError, match="rootfile"):
            EpubArchive.from_bytes(buffer.getvalue()).list_chapters()

    def test_not_a_zip_raises(self) -> None:
        with pytest.raises(StructuralDecodeError):
            EpubArchive.from_bytes(b"definitely not a zip file")


class TestReadWrite:
    def test_read_missing_entry_raises(self, epub_bytes: bytes) -> None:
        with pytest.raises(StructuralDecodeError):
            EpubArchive.from_bytes(epub_bytes).read_chapter_markup("OEBPS/Text/nope.xhtml")

    def test_write_then_read(self, epub_bytes: bytes) -> None:
        archive = EpubArchive.from_bytes(epub_bytes)
        archive.write_chapter_markup("OEBPS/Text/ch1.xhtml", "<p>مرحبا</p>")
        assert archive.read_chapter_markup("OEBPS/Text/ch1.xhtml") == "<p>مرحبا</p>"

    def test_open_from_disk(self, epub_bytes: bytes, tmp_path: Path) -> None:
        path = tmp_path / "book.epub"
        path.write_bytes(epub_bytes)
        assert len(EpubArchive.open(path).list_chapters()) == 2

    def test_open_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            EpubArchive.open(tmp_path / "missing.epub")


class TestFinalize:
    def test_mimetype_first_and_stored(self, epub_bytes: bytes) -> None:
        result = EpubArchive.from_bytes(epub_bytes).finalize()
        with zipfile.ZipFile(io.BytesIO(result)) as zf:
            infos = zf.infolist()
            assert infos[0].filename == "mimetype"
            assert infos[0].compress_type == zipfile.ZIP_STORED
            assert zf.read("mimetype") == b"application/epub+zip"

    def test_preserves_entries_and_applies_writes(self, epub_bytes: bytes) -> None:
        archive = EpubArchive.from_bytes(epub_bytes)
        archive.write_chapter_markup("OEBPS/Text/ch2.xhtml", "<p>اثنان</p>")
        result = archive.finalize()

        assert read_entry(result, "OEBPS/Text/ch2.xhtml") == "<p>اثنان</p>"
        assert "<p>One</p>" in read_entry(result, "OEBPS/Text/ch1.xhtml")
        assert read_entry(result, "OEBPS/Styles/style.css") == "p { margin: 0; }"

    def test_finalized_archive_reopens(self, epub_bytes: bytes) -> None:
        result = EpubArchive.from_bytes(epub_bytes).finalize()
        assert len(EpubArchive.from_bytes(result).list_chapters()) == 2


class TestDecodeMarkup:
    def test_utf8(self) -> None:
        assert decode_markup("<p>שלום</p>".encode("utf-8")) == "<p>שלום</p>"

    def test_utf16_fallback(self) -> None:
        text = "<p>hello world, this is a chapter</p>"
        assert "hello world" in decode_markup(text.encode("utf-16"))
