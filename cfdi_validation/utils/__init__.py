"""
Utility Module for CFDI Validation System.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import setup_logger, get_logger
from .helpers import (
    ensure_directory,
    get_file_extension,
    generate_timestamp,
    iso_timestamp,
    detect_document_type,
    mask_uuid,
)

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'iso_timestamp',
    'detect_document_type',
    'mask_uuid',
]
