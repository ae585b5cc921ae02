"""
OCR Engine Module for CFDI Validation System.

This module provides functionality for:
    - Text recognition on scanned PDFs and photos (Tesseract)
    - QR code decoding (pyzbar)

Author: ML Engineering Team
"""

from .engine import OCREngine
from .tesseract_backend import TesseractBackend
from .qr_decoder import QRDecoder, find_sat_payload

__all__ = ['OCREngine', 'TesseractBackend', 'QRDecoder', 'find_sat_payload']
