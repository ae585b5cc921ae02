"""
PDF Processor Module.

This module handles PDF documents received as bytes:
    - Direct (embedded) text extraction
    - Page rendering to images for OCR
    - Page counting

Uses pdfplumber for text extraction, PyMuPDF for text fallback and
rendering, and pdf2image as the rendering fallback.

Author: ML Engineering Team
"""

import io
from typing import List, Optional
from PIL import Image

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import CorruptedFileError, InputError

# Initialize module logger
logger = get_logger(__name__)


class PDFProcessor:
    """
    Processor for PDF documents held in memory.

    Digital CFDI PDFs carry their text (including the SAT verification
    URL) as embedded text; scanned ones need their pages rendered for OCR.

    Attributes:
        dpi: Resolution for page rendering
        max_pages: Maximum number of pages to read or render

    Example:
        >>> processor = PDFProcessor()
        >>> text = processor.extract_text(pdf_bytes)
        >>> pages = processor.render_pages(pdf_bytes)
    """

    def __init__(self) -> None:
        """Initialize the PDF processor with configuration."""
        self.dpi = get_config("input.pdf.dpi", 300)
        self.max_pages = get_config("input.pdf.max_pages", 3)

        self._check_dependencies()

        logger.debug(f"PDFProcessor initialized (DPI={self.dpi}, max_pages={self.max_pages})")

    def _check_dependencies(self) -> None:
        """Check which PDF libraries are available."""
        try:
            import pdfplumber
            self._pdfplumber = pdfplumber
        except ImportError:
            logger.warning("pdfplumber not available. Install with: pip install pdfplumber")
            self._pdfplumber = None

        try:
            import fitz  # PyMuPDF
            self._pymupdf = fitz
        except ImportError:
            logger.debug("PyMuPDF not available. Using pdf2image for rendering.")
            self._pymupdf = None

        try:
            import pdf2image
            self._pdf2image = pdf2image
        except ImportError:
            logger.debug("pdf2image not available.")
            self._pdf2image = None

    # =========================================================================
    # Text extraction
    # =========================================================================

    def extract_text(self, pdf_bytes: bytes) -> str:
        """
        Extract embedded text from a PDF.

        Args:
            pdf_bytes: Raw PDF content.

        Returns:
            Text of the first pages joined by newlines; empty string if the
            PDF has no text layer.

        Raises:
            CorruptedFileError: If no library can open the PDF.
        """
        errors = []

        if self._pdfplumber is not None:
            try:
                text = self._extract_with_pdfplumber(pdf_bytes)
                if text.strip():
                    return text
            except Exception as e:
                logger.debug(f"pdfplumber text extraction failed: {e}")
                errors.append(f"pdfplumber: {e}")

        if self._pymupdf is not None:
            try:
                return self._extract_with_pymupdf(pdf_bytes)
            except Exception as e:
                logger.debug(f"PyMuPDF text extraction failed: {e}")
                errors.append(f"PyMuPDF: {e}")

        if errors:
            raise CorruptedFileError("pdf", "; ".join(errors))
        return ""

    def _extract_with_pdfplumber(self, pdf_bytes: bytes) -> str:
        with self._pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            pages = pdf.pages[:self.max_pages]
            return "\n".join(page.extract_text() or "" for page in pages)

    def _extract_with_pymupdf(self, pdf_bytes: bytes) -> str:
        doc = self._pymupdf.open(stream=pdf_bytes, filetype="pdf")
        try:
            texts = []
            for page_num in range(min(len(doc), self.max_pages)):
                texts.append(doc.load_page(page_num).get_text())
            return "\n".join(texts)
        finally:
            doc.close()

    # =========================================================================
    # Rendering
    # =========================================================================

    def render_pages(self, pdf_bytes: bytes) -> List[Image.Image]:
        """
        Render the first pages of a PDF to RGB images.

        Args:
            pdf_bytes: Raw PDF content.

        Returns:
            List of PIL Images, one per page.

        Raises:
            CorruptedFileError: If the PDF cannot be rendered.
            InputError: If no rendering library is available.
        """
        if self._pymupdf is not None:
            images = self._render_with_pymupdf(pdf_bytes)
        elif self._pdf2image is not None:
            images = self._render_with_pdf2image(pdf_bytes)
        else:
            raise InputError(
                "No PDF rendering library available. "
                "Install PyMuPDF or pdf2image."
            )

        logger.debug(f"Rendered {len(images)} PDF page(s)")
        return images

    def _render_with_pymupdf(self, pdf_bytes: bytes) -> List[Image.Image]:
        images = []

        try:
            doc = self._pymupdf.open(stream=pdf_bytes, filetype="pdf")

            # Default PDF resolution is 72 DPI
            zoom = self.dpi / 72.0
            matrix = self._pymupdf.Matrix(zoom, zoom)

            for page_num in range(min(len(doc), self.max_pages)):
                pix = doc.load_page(page_num).get_pixmap(matrix=matrix)
                image = Image.open(io.BytesIO(pix.tobytes("png")))
                images.append(image.convert('RGB') if image.mode != 'RGB' else image)

            doc.close()

        except Exception as e:
            logger.error(f"PyMuPDF rendering failed: {e}")
            raise CorruptedFileError("pdf", str(e))

        return images

    def _render_with_pdf2image(self, pdf_bytes: bytes) -> List[Image.Image]:
        try:
            images = self._pdf2image.convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                first_page=1,
                last_page=self.max_pages,
                fmt='png'
            )
        except Exception as e:
            logger.error(f"pdf2image rendering failed: {e}")
            raise CorruptedFileError("pdf", str(e))

        return [img.convert('RGB') if img.mode != 'RGB' else img for img in images]

    def get_page_count(self, pdf_bytes: bytes) -> Optional[int]:
        """Total number of pages, or None if it cannot be determined."""
        if self._pymupdf is not None:
            try:
                doc = self._pymupdf.open(stream=pdf_bytes, filetype="pdf")
                count = len(doc)
                doc.close()
                return count
            except Exception as e:
                logger.debug(f"PyMuPDF page count failed: {e}")

        if self._pdfplumber is not None:
            try:
                with self._pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                    return len(pdf.pages)
            except Exception as e:
                logger.debug(f"pdfplumber page count failed: {e}")

        return None
