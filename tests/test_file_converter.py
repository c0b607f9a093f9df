"""Tests for verification/file_converter.py."""

import io
import os

import pytest
from PIL import Image
from pdf2image.exceptions import PDFPageCountError

import verification.file_converter as file_converter
from verification.file_converter import UnsupportedFileError, load_document_image


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (32, 20), color=(10, 120, 200)).save(buffer, "PNG")
    return buffer.getvalue()


def test_png_is_reencoded_as_jpeg():
    jpeg = load_document_image(_png_bytes(), "scan.PNG")

    assert jpeg[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(jpeg)) as img:
        assert img.format == "JPEG"
        assert img.size == (32, 20)


def test_unsupported_extension():
    with pytest.raises(UnsupportedFileError):
        load_document_image(b"hello", "notes.txt")


def test_truncated_image_raises_os_error():
    buffer = io.BytesIO()
    Image.frombytes("RGB", (64, 64), os.urandom(64 * 64 * 3)).save(buffer, "PNG")
    data = buffer.getvalue()
    with pytest.raises(OSError):
        load_document_image(data[: len(data) // 2], "scan.png")


class TestPdf:

    def test_first_page_is_rendered(self, monkeypatch):
        calls = []

        def fake_convert(data, **kwargs):
            calls.append(kwargs)
            return [Image.new("RGB", (40, 30), color="white")]

        monkeypatch.setattr(file_converter, "convert_from_bytes", fake_convert)
        jpeg = load_document_image(b"%PDF-1.4 ...", "passport.pdf")

        assert jpeg[:2] == b"\xff\xd8"
        assert calls[0]["first_page"] == 1
        assert calls[0]["last_page"] == 1

    def test_unreadable_pdf(self, monkeypatch):
        def fake_convert(data, **kwargs):
            raise PDFPageCountError("Unable to get page count.")

        monkeypatch.setattr(file_converter, "convert_from_bytes", fake_convert)
        with pytest.raises(UnsupportedFileError, match="Could not read PDF"):
            load_document_image(b"not a pdf", "passport.pdf")

    def test_pdf_without_pages(self, monkeypatch):
        monkeypatch.setattr(file_converter, "convert_from_bytes", lambda data, **kwargs: [])
        with pytest.raises(UnsupportedFileError, match="no pages"):
            load_document_image(b"%PDF-1.4", "passport.pdf")
