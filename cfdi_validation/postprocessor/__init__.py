"""
Post-Processing Module for CFDI Validation System.

This module provides functionality for:
    - Amount normalization to Decimal
    - RFC and UUID normalization
    - Field validation before querying the SAT

Author: ML Engineering Team
"""

from .normalizers import AmountNormalizer, IdentifierNormalizer
from .validators import (
    RfcValidator,
    UuidValidator,
    AmountValidator,
    FieldValidator,
    RFC_PATTERN,
    UUID_PATTERN,
)

__all__ = [
    'AmountNormalizer',
    'IdentifierNormalizer',
    'RfcValidator',
    'UuidValidator',
    'AmountValidator',
    'FieldValidator',
    'RFC_PATTERN',
    'UUID_PATTERN',
]
