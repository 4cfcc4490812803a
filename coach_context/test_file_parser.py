"""
File Parser Tests
=================
"""

import asyncio
import io

import pytest
from pypdf import PdfWriter

from coach_context.file_parser import FileParseError, LocalFileParser, parse_file_bytes


def blank_pdf(pages=2) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestParseFileBytes:

    def test_plain_text(self):
        parsed = parse_file_bytes("  héllo notes \n".encode("utf-8"), "text/plain", "notes.txt")
        assert parsed.text == "héllo notes"
        assert parsed.filename == "notes.txt"

    def test_json_is_text(self):
        assert parse_file_bytes(b'{"a": 1}', "application/json", "a.json").text == '{"a": 1}'

    def test_pdf_page_count(self):
        parsed = parse_file_bytes(blank_pdf(3), "application/pdf", "w.pdf")
        assert parsed.page_count == 3
        assert parsed.mime_type == "application/pdf"

    def test_corrupt_pdf_raises(self):
        with pytest.raises(FileParseError):
            parse_file_bytes(b"this is not a pdf", "application/pdf", "broken.pdf")

    def test_image_placeholder(self):
        text = parse_file_bytes(b"\x89PNG", "image/png", "face.png").text
        assert text.startswith("[Image file: face.png")

    def test_word_placeholder(self):
        text = parse_file_bytes(b"PK", "application/msword", "cv.doc").text
        assert text.startswith("[Word document: cv.doc")

    def test_unsupported_placeholder(self):
        text = parse_file_bytes(b"\x00", "application/zip", "a.zip").text
        assert text == "[Unsupported file type: application/zip. File: a.zip]"


class TestLocalFileParser:

    def test_reads_from_storage_root(self, tmp_path):
        (tmp_path / "uploads").mkdir()
        (tmp_path / "uploads" / "n.txt").write_text("journal prompt", encoding="utf-8")
        parser = LocalFileParser(str(tmp_path))

        parsed = asyncio.run(parser.parse_file_from_storage("/uploads/n.txt", "text/plain", "n.txt"))

        assert parsed.text == "journal prompt"

    def test_missing_object_raises(self, tmp_path):
        parser = LocalFileParser(str(tmp_path))
        with pytest.raises(FileParseError):
            asyncio.run(parser.parse_file_from_storage("nope.txt", "text/plain", "nope.txt"))

    def test_path_cannot_escape_root(self, tmp_path):
        root = tmp_path / "root"
        root.mkdir()
        (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
        parser = LocalFileParser(str(root))

        with pytest.raises(FileParseError):
            asyncio.run(parser.parse_file_from_storage("../secret.txt", "text/plain", "secret.txt"))
