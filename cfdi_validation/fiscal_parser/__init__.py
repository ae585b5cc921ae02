"""
Fiscal Parser Module for CFDI Validation System.

This module provides functionality for:
    - The FiscalTuple data model
    - Rule-based extraction of UUID, RFCs and total from text
    - Parsing SAT QR verification URLs
    - Reading the fiscal tuple from CFDI XML

Author: ML Engineering Team
"""

from .fiscal_tuple import FiscalTuple
from .catalogs import RfcCatalog
from .rules import ExtractionRule, TotalFamily, UUID_RULES, QR_PARAMETER_RULES, TOTAL_FAMILIES
from .parser import FiscalDataParser, parse_text, parse_qr_url
from .cfdi_xml import read_cfdi_xml

__all__ = [
    'FiscalTuple',
    'RfcCatalog',
    'ExtractionRule',
    'TotalFamily',
    'UUID_RULES',
    'QR_PARAMETER_RULES',
    'TOTAL_FAMILIES',
    'FiscalDataParser',
    'parse_text',
    'parse_qr_url',
    'read_cfdi_xml',
]
