"""
Text Extractor Module.

Gets the text of a CFDI document: the embedded PDF text first, OCR when
that is too short or the document is an image.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import detect_document_type
from cfdi_validation.utils.exceptions import CfdiValidationError
from .pdf_processor import PDFProcessor

# Initialize module logger
logger = get_logger(__name__)


METHOD_DIRECT = 'texto_directo'
METHOD_OCR = 'ocr'
METHOD_NONE = 'ninguno'


@dataclass
class TextExtractionResult:
    """
    Extracted text and how it was obtained.

    Attributes:
        text: Extracted text (empty if nothing could be read)
        method: texto_directo, ocr or ninguno
        document_type: 'pdf', 'image' or None
        page_count: Pages in the document, if known
    """
    text: str
    method: str
    document_type: Optional[str] = None
    page_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'documentType': self.document_type,
            'pageCount': self.page_count,
            'textLength': len(self.text),
        }


class TextExtractor:
    """
    Two-strategy text extraction.

    Never raises: collaborator failures are logged and produce empty text.
    When both strategies produce text, the longer one is returned.

    Args:
        ocr_engine: Object with recognize(bytes) -> str. An OCREngine is
            created if not provided.
        pdf_processor: Direct text collaborator with extract_text(bytes).
        min_text_length: Direct text shorter than this triggers OCR.

    Example:
        >>> extractor = TextExtractor()
        >>> result = extractor.extract_with_details(pdf_bytes)
        >>> result.method
        'texto_directo'
    """

    def __init__(
        self,
        ocr_engine: Optional[Any] = None,
        pdf_processor: Optional[Any] = None,
        min_text_length: Optional[int] = None
    ):
        if ocr_engine is None:
            from cfdi_validation.ocr_engine import OCREngine
            ocr_engine = OCREngine()

        self.ocr_engine = ocr_engine
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.min_text_length = (
            min_text_length if min_text_length is not None
            else get_config("input.pdf.min_text_length", 200)
        )

    def extract(self, document_bytes: bytes) -> str:
        """Return the best available text of a document."""
        return self.extract_with_details(document_bytes).text

    def extract_with_details(self, document_bytes: bytes) -> TextExtractionResult:
        """
        Extract text and report the method used.

        Args:
            document_bytes: Raw PDF or image content.

        Returns:
            TextExtractionResult.
        """
        if not document_bytes:
            logger.warning("Empty document, no text to extract")
            return TextExtractionResult(text="", method=METHOD_NONE)

        document_type = detect_document_type(document_bytes)
        page_count = None
        direct_text = ""

        if document_type == 'pdf':
            direct_text = self._extract_direct(document_bytes)
            page_count = self._page_count(document_bytes)

            if len(direct_text.strip()) >= self.min_text_length:
                logger.info(f"Direct text extraction: {len(direct_text)} characters")
                return TextExtractionResult(direct_text, METHOD_DIRECT, document_type, page_count)

            logger.info(
                f"Direct text too short ({len(direct_text.strip())} < {self.min_text_length}), "
                "falling back to OCR"
            )
        elif document_type == 'image':
            page_count = 1

        ocr_text = self._extract_ocr(document_bytes)

        if len(ocr_text.strip()) > len(direct_text.strip()):
            logger.info(f"OCR extraction: {len(ocr_text)} characters")
            return TextExtractionResult(ocr_text, METHOD_OCR, document_type, page_count)

        if direct_text.strip():
            return TextExtractionResult(direct_text, METHOD_DIRECT, document_type, page_count)

        logger.warning("No text could be extracted from the document")
        return TextExtractionResult("", METHOD_NONE, document_type, page_count)

    def extract_ocr(self, document_bytes: bytes) -> TextExtractionResult:
        """OCR-only extraction, for photos and scans."""
        text = self._extract_ocr(document_bytes) if document_bytes else ""
        return TextExtractionResult(
            text=text,
            method=METHOD_OCR if text.strip() else METHOD_NONE,
            document_type=detect_document_type(document_bytes) if document_bytes else None,
        )

    def _extract_direct(self, document_bytes: bytes) -> str:
        try:
            return self.pdf_processor.extract_text(document_bytes) or ""
        except CfdiValidationError as e:
            logger.warning(f"Direct text extraction failed: {e.message}")
        except Exception as e:
            logger.warning(f"Direct text extraction failed: {e}")
        return ""

    def _extract_ocr(self, document_bytes: bytes) -> str:
        try:
            return self.ocr_engine.recognize(document_bytes) or ""
        except Exception as e:
            logger.warning(f"OCR failed: {e}")
        return ""

    def _page_count(self, document_bytes: bytes) -> Optional[int]:
        get_page_count = getattr(self.pdf_processor, 'get_page_count', None)
        if get_page_count is None:
            return None
        return get_page_count(document_bytes)
