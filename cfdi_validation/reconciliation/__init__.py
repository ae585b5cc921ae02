"""
Reconciliation Module for CFDI Validation System.

Compares fiscal data recovered from document evidence (QR, OCR) against
a structured record.
"""

from .reconciliation_result import ReconciliationMode, FieldDifference, ReconciliationResult
from .reconciler import EvidenceReconciler

__all__ = [
    'ReconciliationMode',
    'FieldDifference',
    'ReconciliationResult',
    'EvidenceReconciler',
]
