"""
Input Handler Module for CFDI Validation System.

This module provides functionality for:
    - Loading documents from disk as bytes
    - Detecting document type from content
    - Extracting embedded PDF text
    - Rendering and normalizing images for OCR
    - Choosing between direct text and OCR

Supported formats:
    - PDF (digital and scanned)
    - Images: JPG, JPEG, PNG, TIFF, BMP

Author: ML Engineering Team
"""

from .handler import InputHandler, InputDocument
from .pdf_processor import PDFProcessor
from .image_processor import ImageProcessor
from .text_extractor import TextExtractor, TextExtractionResult

__all__ = [
    'InputHandler',
    'InputDocument',
    'PDFProcessor',
    'ImageProcessor',
    'TextExtractor',
    'TextExtractionResult',
]
