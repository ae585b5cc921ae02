"""
Output Handler Module for CFDI Validation System.

This module provides functionality for:
    - Excel reports of validation decisions

Author: ML Engineering Team
"""

from .excel_exporter import ExcelExporter

__all__ = ['ExcelExporter']
