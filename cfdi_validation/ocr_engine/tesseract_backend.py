"""
Tesseract OCR Backend.

This module provides OCR functionality using Tesseract (pytesseract).
CFDI documents are Spanish, so the default language is 'spa'.

Requirements:
    - Tesseract OCR installed on the system, with the Spanish language pack
    - pytesseract Python package

Author: ML Engineering Team
"""

import time
from PIL import Image

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError

# Initialize module logger
logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Attributes:
        language: Tesseract language code (e.g., "spa")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract configuration

    Example:
        >>> backend = TesseractBackend()
        >>> text = backend.get_raw_text(image)
    """

    def __init__(self) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.language = get_config("ocr.tesseract.lang", "spa")
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check if Tesseract is available.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            import pytesseract
            self._pytesseract = pytesseract

            version = pytesseract.get_tesseract_version()
            logger.info(f"Tesseract version: {version}")

        except ImportError:
            raise OCREngineNotAvailableError(
                "pytesseract (install with: pip install pytesseract)"
            )
        except Exception as e:
            raise OCREngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            )

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def get_raw_text(self, image: Image.Image) -> str:
        """
        Get the plain text of an image.

        Args:
            image: PIL Image to process.

        Returns:
            Recognized text with Tesseract's line breaks.

        Raises:
            OCRProcessingError: If Tesseract fails.
        """
        start_time = time.time()

        try:
            text = self._pytesseract.image_to_string(
                image,
                lang=self.language,
                config=self._build_config()
            )
        except Exception as e:
            logger.error(f"OCR processing failed: {e}")
            raise OCRProcessingError("image", str(e))

        logger.debug(f"Tesseract read {len(text)} characters ({time.time() - start_time:.2f}s)")
        return text
