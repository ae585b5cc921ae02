"""
SAT Client Module for CFDI Validation System.

This module provides functionality for:
    - Querying the SAT CFDI status web service (SOAP)
    - Mapping SAT answers to a storage decision
    - Caching answers for a few minutes

Author: ML Engineering Team
"""

from .status import EstadoSAT, AuthorityStatus
from .soap import ConsultaResult, build_envelope, parse_response
from .cache import AuthorityCache
from .client import (
    SatValidationClient,
    get_default_cache,
    get_default_client,
    validate_cfdi,
    clear_cache,
)

__all__ = [
    'EstadoSAT',
    'AuthorityStatus',
    'ConsultaResult',
    'build_envelope',
    'parse_response',
    'AuthorityCache',
    'SatValidationClient',
    'get_default_cache',
    'get_default_client',
    'validate_cfdi',
    'clear_cache',
]
