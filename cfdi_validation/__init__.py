"""
CFDI Fiscal-Evidence Validation System - Source Package.

This package decides whether a Mexican electronic invoice (CFDI) may be
stored, from whatever evidence is at hand: the PDF representation, a
photo, its QR code and, optionally, the CFDI XML.

Modules:
    - input_handler: Document loading, PDF text and OCR fallback
    - ocr_engine: Tesseract OCR and QR decoding
    - fiscal_parser: UUID, RFCs and total from text, QR and XML
    - postprocessor: Normalization and validation of fiscal fields
    - reconciliation: Evidence vs record comparison
    - sat_client: SAT CFDI status web service and cache
    - orchestrator: Validation flows and decisions
    - output_handler: Excel reports

Architecture:
    Input → Text/OCR/QR → Fiscal Parser → (Reconciliation) → SAT → Decision
                                                                      ↓
                                                                Excel report
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'input_handler',
    'ocr_engine',
    'fiscal_parser',
    'postprocessor',
    'reconciliation',
    'sat_client',
    'orchestrator',
    'output_handler',
    'utils'
]
