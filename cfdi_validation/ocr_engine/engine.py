"""
Main OCR Engine Module.

This module provides the OCREngine class, the OCR collaborator of the
text extractor: document bytes in, recognized text out.

Usage:
    from cfdi_validation.ocr_engine import OCREngine

    engine = OCREngine()
    text = engine.recognize(document_bytes)

Author: ML Engineering Team
"""

from typing import Any, List, Optional
from PIL import Image

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import detect_document_type
from cfdi_validation.utils.exceptions import CfdiValidationError, OCRError
from cfdi_validation.input_handler.pdf_processor import PDFProcessor
from cfdi_validation.input_handler.image_processor import ImageProcessor
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    OCR over PDF and image documents.

    PDF pages are rendered to images first. The backend is created on first
    use, so a missing Tesseract installation only matters when OCR is
    actually needed.

    Attributes:
        backend_name: Name of the OCR backend

    Example:
        >>> engine = OCREngine()
        >>> text = engine.recognize(open("factura.jpg", "rb").read())
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(
        self,
        backend: Optional[Any] = None,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: Object with get_raw_text(image) -> str. A
                TesseractBackend is created lazily if not provided.
            pdf_processor: Renders PDF pages.
            image_processor: Loads and prepares images.
        """
        self.backend_name = get_config("ocr.engine", "pytesseract")
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            logger.warning(f"Unknown backend '{self.backend_name}', falling back to tesseract")
            self.backend_name = "tesseract"

        self._backend = backend
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.image_processor = image_processor or ImageProcessor()

    @property
    def backend(self) -> Any:
        if self._backend is None:
            self._backend = TesseractBackend()
            logger.info(f"OCR Engine initialized with backend: {self.backend_name}")
        return self._backend

    def load_images(self, document_bytes: bytes) -> List[Image.Image]:
        """
        Turn a document into page images.

        Raises:
            CorruptedFileError: If the document cannot be decoded.
            InputError: If the format is not PDF or image.
        """
        document_type = detect_document_type(document_bytes)

        if document_type == 'pdf':
            return self.pdf_processor.render_pages(document_bytes)

        # Unknown content is handed to Pillow, which knows more formats
        return [self.image_processor.load(document_bytes)]

    def recognize(self, document_bytes: bytes) -> str:
        """
        Recognize the text of a document.

        Args:
            document_bytes: Raw PDF or image content.

        Returns:
            Text of all pages joined by newlines; empty string on failure.
        """
        if not document_bytes:
            return ""

        try:
            images = self.load_images(document_bytes)
            texts = [
                self.backend.get_raw_text(self.image_processor.prepare_for_ocr(image))
                for image in images
            ]
        except OCRError as e:
            logger.warning(f"OCR unavailable or failed: {e.message}")
            return ""
        except CfdiValidationError as e:
            logger.warning(f"Could not prepare document for OCR: {e.message}")
            return ""

        text = "\n".join(t for t in texts if t)
        logger.info(f"OCR completed: {len(images)} page(s), {len(text)} characters")
        return text
