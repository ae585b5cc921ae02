"""
Tests for text extraction and input loading.

Covers:
- Direct PDF text vs OCR fallback
- Collaborator failures
- Loading documents from disk
"""

import pytest

from cfdi_validation.input_handler import InputHandler, TextExtractor
from cfdi_validation.utils.exceptions import OCRProcessingError, UnsupportedFileTypeError
from cfdi_validation.utils.helpers import detect_document_type
from conftest import FakeOCR, FakePdfProcessor, PDF_BYTES, PNG_BYTES


LONG_TEXT = "FACTURA " * 40
SHORT_TEXT = "FACTURA"


def crear_extractor(direct="", ocr="", ocr_error=None, min_text_length=200):
    return TextExtractor(
        ocr_engine=FakeOCR(ocr, ocr_error),
        pdf_processor=FakePdfProcessor(direct, pages=2),
        min_text_length=min_text_length,
    )


# =============================================================================
# STRATEGY SELECTION
# =============================================================================

class TestExtractWithDetails:

    def test_direct_text_is_enough(self):
        extractor = crear_extractor(direct=LONG_TEXT, ocr="OCR TEXT")
        result = extractor.extract_with_details(PDF_BYTES)

        assert result.method == 'texto_directo'
        assert result.text == LONG_TEXT
        assert result.document_type == 'pdf'
        assert result.page_count == 2
        assert extractor.ocr_engine.calls == 0

    def test_short_direct_text_falls_back_to_ocr(self):
        extractor = crear_extractor(direct=SHORT_TEXT, ocr=LONG_TEXT)
        result = extractor.extract_with_details(PDF_BYTES)

        assert result.method == 'ocr'
        assert result.text == LONG_TEXT

    def test_longer_text_wins(self):
        """OCR shorter than the direct text keeps the direct text."""
        extractor = crear_extractor(direct="FACTURA ELECTRONICA", ocr="FAC")
        result = extractor.extract_with_details(PDF_BYTES)

        assert result.method == 'texto_directo'
        assert result.text == "FACTURA ELECTRONICA"

    def test_image_goes_straight_to_ocr(self):
        extractor = crear_extractor(direct=LONG_TEXT, ocr="TEXTO FOTO")
        result = extractor.extract_with_details(PNG_BYTES)

        assert result.method == 'ocr'
        assert result.document_type == 'image'
        assert result.page_count == 1

    def test_nothing_extracted(self):
        result = crear_extractor().extract_with_details(PDF_BYTES)

        assert result.method == 'ninguno'
        assert result.text == ""

    def test_empty_document(self):
        result = crear_extractor(ocr="X").extract_with_details(b"")

        assert result.method == 'ninguno'
        assert result.document_type is None

    def test_ocr_failure_is_swallowed(self):
        extractor = crear_extractor(direct=SHORT_TEXT, ocr_error=OCRProcessingError("page", "boom"))
        result = extractor.extract_with_details(PDF_BYTES)

        assert result.method == 'texto_directo'
        assert result.text == SHORT_TEXT

    def test_extract_returns_text(self):
        assert crear_extractor(direct=LONG_TEXT).extract(PDF_BYTES) == LONG_TEXT

    def test_extract_ocr(self):
        result = crear_extractor(direct=LONG_TEXT, ocr="TEXTO").extract_ocr(PDF_BYTES)

        assert result.method == 'ocr'
        assert result.text == "TEXTO"


class TestRealPdf:
    """Direct extraction from a PDF generated with PyMuPDF."""

    def test_pdf_text_layer(self):
        fitz = pytest.importorskip("fitz")

        document = fitz.open()
        page = document.new_page()
        page.insert_text((72, 72), "FOLIO FISCAL 6F1D2C3B-4A5E-4F60-8A7B-9C0D1E2F3A4B")
        pdf_bytes = document.tobytes()
        document.close()

        extractor = TextExtractor(ocr_engine=FakeOCR(""), min_text_length=10)
        result = extractor.extract_with_details(pdf_bytes)

        assert result.method == 'texto_directo'
        assert "6F1D2C3B-4A5E-4F60-8A7B-9C0D1E2F3A4B" in result.text
        assert result.page_count == 1


# =============================================================================
# INPUT HANDLER
# =============================================================================

class TestInputHandler:

    def test_detect_document_type(self):
        assert detect_document_type(PDF_BYTES) == 'pdf'
        assert detect_document_type(b"\n\n" + PDF_BYTES) == 'pdf'
        assert detect_document_type(PNG_BYTES) == 'image'
        assert detect_document_type(b"<xml/>") is None

    def test_load(self, tmp_path):
        path = tmp_path / "factura.pdf"
        path.write_bytes(PDF_BYTES)

        document = InputHandler().load(path)

        assert document.success
        assert document.file_type == 'pdf'
        assert document.data == PDF_BYTES

    def test_load_reports_errors(self, tmp_path):
        empty = tmp_path / "vacio.pdf"
        empty.write_bytes(b"")

        document = InputHandler().load(empty)

        assert not document.success
        assert "empty" in document.error

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "factura.docx"
        path.write_bytes(b"PK")

        with pytest.raises(UnsupportedFileTypeError):
            InputHandler().validate_file(path)

    def test_load_batch(self, tmp_path):
        (tmp_path / "b.pdf").write_bytes(PDF_BYTES)
        (tmp_path / "a.png").write_bytes(PNG_BYTES)
        (tmp_path / "notas.txt").write_text("ignorar")

        documents = InputHandler().load_batch(tmp_path)

        assert [d.filename for d in documents] == ["a.png", "b.pdf"]


# =============================================================================
# OCR ENGINE
# =============================================================================

class FakeBackend:
    def __init__(self, text="TEXTO RECONOCIDO"):
        self.text = text
        self.images = []

    def get_raw_text(self, image):
        self.images.append(image)
        return self.text


def png_bytes(size=(40, 20), mode="RGBA"):
    import io
    from PIL import Image

    buffer = io.BytesIO()
    Image.new(mode, size, (0, 0, 0, 0) if mode == "RGBA" else 0).save(buffer, format="PNG")
    return buffer.getvalue()


class TestOCREngine:

    def test_recognize_image(self):
        from cfdi_validation.ocr_engine import OCREngine

        backend = FakeBackend()
        text = OCREngine(backend=backend).recognize(png_bytes())

        assert text == "TEXTO RECONOCIDO"
        assert len(backend.images) == 1
        assert backend.images[0].mode == 'L'

    def test_unreadable_image_gives_empty_text(self):
        from cfdi_validation.ocr_engine import OCREngine

        backend = FakeBackend()
        text = OCREngine(backend=backend).recognize(PNG_BYTES)

        assert text == ""
        assert backend.images == []

    def test_transparent_background_becomes_white(self):
        from cfdi_validation.input_handler import ImageProcessor

        image = ImageProcessor().load(png_bytes())

        assert image.mode == 'RGB'
        assert image.getpixel((0, 0)) == (255, 255, 255)

    def test_large_image_is_resized(self):
        from PIL import Image
        from cfdi_validation.input_handler import ImageProcessor

        processor = ImageProcessor()
        ready = processor.prepare_for_ocr(Image.new("RGB", (4960, 7016), "white"))

        assert ready.size == (2480, 3508)
