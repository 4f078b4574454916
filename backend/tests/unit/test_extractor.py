"""
Unit Tests — TextExtractor and upload helpers
══════════════════════════════════════════════
Extraction runs through the real parsers (PyMuPDF, pypdf, python-docx)
against files generated in conftest.py.

Coverage targets:
  ✅ PDF / DOCX / TXT → non-empty cleaned text
  ✅ Declared type is case-insensitive
  ✅ Unknown type       → UnsupportedTypeError
  ✅ Corrupt PDF/DOCX   → ExtractionError
  ✅ Image-only PDF     → ExtractionError
  ✅ clean() whitespace normalisation
  ✅ validate() empty / too-large bounds
  ✅ filename sanitising, extension detection, human-readable sizes
"""

from __future__ import annotations

import pytest

from docintel.core.exceptions import (
    ContentTooLargeError,
    EmptyContentError,
    ExtractionError,
    UnsupportedTypeError,
)
from docintel.processing.extractor import (
    FileType,
    TextExtractor,
    file_type_from_name,
    format_file_size,
    parse_file_type,
    sanitize_filename,
)


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor(max_chars=1_000)


# ─────────────────────────────────────────────────────────────────────────────
# Extraction per file type
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
@pytest.mark.extraction
class TestExtraction:

    async def test_pdf_text_layer_is_extracted(self, extractor, sample_pdf_bytes):
        text = await extractor.extract_clean_validate(sample_pdf_bytes, "pdf")
        assert "Quarterly revenue" in text
        assert "refund policy" in text

    async def test_docx_paragraphs_joined_with_newlines(self, extractor, sample_docx_bytes):
        text = await extractor.extract_clean_validate(sample_docx_bytes, "docx")
        assert text == (
            "Quarterly revenue grew by twelve percent.\n"
            "The refund policy covers annual plans only."
        )

    async def test_txt_is_decoded_as_utf8(self, extractor):
        text = await extractor.extract("Grüße  aus\tBerlin".encode("utf-8"), "txt")
        assert text == "Grüße  aus\tBerlin"

    async def test_txt_invalid_bytes_are_replaced_not_rejected(self, extractor):
        text = await extractor.extract(b"abc\xff\xfedef", "txt")
        assert text.startswith("abc")
        assert text.endswith("def")
        assert "�" in text

    @pytest.mark.parametrize("declared", ["PDF", "Pdf", ".pdf", " pdf "])
    async def test_declared_type_is_case_insensitive(self, extractor, sample_pdf_bytes, declared):
        text = await extractor.extract(sample_pdf_bytes, declared)
        assert text.strip()

    async def test_unsupported_type_raises(self, extractor):
        with pytest.raises(UnsupportedTypeError) as exc_info:
            await extractor.extract(b"data", "exe")
        assert exc_info.value.code == "UNSUPPORTED_FILE_TYPE"
        assert exc_info.value.details["file_type"] == "exe"

    async def test_corrupt_pdf_raises_extraction_error(self, extractor):
        with pytest.raises(ExtractionError) as exc_info:
            await extractor.extract(b"this is not a pdf at all", "pdf")
        # both strategies were attempted
        assert len(exc_info.value.details["attempts"]) == 2

    async def test_image_only_pdf_raises_extraction_error(self, extractor, blank_pdf_bytes):
        with pytest.raises(ExtractionError, match="text layer"):
            await extractor.extract(blank_pdf_bytes, "pdf")

    async def test_corrupt_docx_raises_extraction_error(self, extractor):
        with pytest.raises(ExtractionError):
            await extractor.extract(b"PK\x03\x04 definitely not a zip", "docx")

    async def test_empty_txt_fails_validation(self, extractor):
        with pytest.raises(EmptyContentError):
            await extractor.extract_clean_validate(b"  \n\n \t ", "txt")

    async def test_oversized_txt_fails_validation(self, extractor):
        with pytest.raises(ContentTooLargeError) as exc_info:
            await extractor.extract_clean_validate(b"x" * 1_001, "txt")
        assert exc_info.value.details == {"length": 1_001, "max_length": 1_000}


# ─────────────────────────────────────────────────────────────────────────────
# Normalisation and bounds
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
@pytest.mark.extraction
class TestCleanAndValidate:

    def test_clean_collapses_spaces_and_blank_lines(self):
        assert TextExtractor.clean("a   b\n\n\nc ") == "a b\nc"

    @pytest.mark.parametrize("value", [None, "", "   ", "\n\n\t"])
    def test_clean_of_empty_input_is_empty(self, value):
        assert TextExtractor.clean(value) == ""

    def test_clean_drops_spaces_around_newlines(self):
        assert TextExtractor.clean("line one \n   line two\t\n") == "line one\nline two"

    def test_clean_keeps_single_newlines(self):
        assert TextExtractor.clean("a\nb\nc") == "a\nb\nc"

    def test_validate_accepts_text_at_the_limit(self, extractor):
        text = "y" * 1_000
        assert extractor.validate(text) == text

    def test_validate_rejects_empty(self, extractor):
        with pytest.raises(EmptyContentError) as exc_info:
            extractor.validate("")
        assert exc_info.value.retryable is False

    def test_default_limit_comes_from_settings(self):
        assert TextExtractor().max_chars == 1_000_000


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
@pytest.mark.extraction
class TestUploadHelpers:

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("report.pdf",        FileType.PDF),
            ("Thesis.DOCX",       FileType.DOCX),
            ("notes.final.txt",   FileType.TXT),
        ],
    )
    def test_file_type_from_name(self, name, expected):
        assert file_type_from_name(name) is expected

    @pytest.mark.parametrize("name", ["archive.zip", "README", "", "photo.png"])
    def test_file_type_from_name_rejects_unknown(self, name):
        with pytest.raises(UnsupportedTypeError):
            file_type_from_name(name)

    def test_parse_file_type_strips_leading_dot(self):
        assert parse_file_type(".TxT") is FileType.TXT

    def test_sanitize_filename_replaces_unsafe_characters(self):
        assert sanitize_filename("my report (v2).pdf") == "my_report_v2_.pdf"

    def test_sanitize_filename_strips_path_separators(self):
        assert "/" not in sanitize_filename("../../etc/passwd.txt")

    def test_sanitize_filename_caps_length(self):
        assert len(sanitize_filename("a" * 400 + ".txt")) == 255

    @pytest.mark.parametrize(
        "size, expected",
        [
            (0,                 "0 Bytes"),
            (512,               "512 Bytes"),
            (1024,              "1 KB"),
            (1536,              "1.5 KB"),
            (1024 * 1024,       "1 MB"),
            (5 * 1024 ** 3 // 2, "2.5 GB"),
        ],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected
