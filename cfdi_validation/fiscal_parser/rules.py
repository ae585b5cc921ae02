"""
Extraction Rules.

Named, ordered rules the fiscal parser applies to normalized (collapsed,
upper-cased) document text. Each rule targets one field and returns the
raw matched string or None; the parser keeps the first non-empty result
per field.

Rule lists:
    UUID_RULES: folio fiscal lookups, most specific first
    QR_PARAMETER_RULES: individual SAT URL parameters (RE=, RR=, TT=)
    TOTAL_FAMILIES: total amount patterns in priority order

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern

from cfdi_validation.postprocessor import RFC_PATTERN, UUID_PATTERN


@dataclass(frozen=True)
class ExtractionRule:
    """
    A named extractor for a single fiscal field.

    Attributes:
        name: Rule identifier used in logs
        field: FiscalTuple attribute the rule fills
        extract: Callable returning the matched value or None
    """
    name: str
    field: str
    extract: Callable[[str], Optional[str]]


def regex_rule(name: str, field: str, pattern: str, group: int = 1) -> ExtractionRule:
    """Build a rule returning the given group of the first regex match."""
    compiled = re.compile(pattern)

    def extract(text: str) -> Optional[str]:
        match = compiled.search(text)
        return match.group(group) if match else None

    return ExtractionRule(name=name, field=field, extract=extract)


# =============================================================================
# UUID
# =============================================================================

UUID_RULES: List[ExtractionRule] = [
    regex_rule('folio_fiscal', 'uuid', rf'FOLIO\s*FISCAL[:\s]*({UUID_PATTERN})'),
    regex_rule('uuid_label', 'uuid', rf'UUID[:\s]*({UUID_PATTERN})'),
    regex_rule('id_parameter', 'uuid', rf'ID=({UUID_PATTERN})'),
    # Timbre cadena original: ||1.1|UUID|FECHA|RFC_PAC|...
    regex_rule('cadena_original', 'uuid', rf'\|\|1\.1\|({UUID_PATTERN})\|'),
    regex_rule('bare_uuid', 'uuid', rf'({UUID_PATTERN})'),
]


# =============================================================================
# SAT verification URL
# =============================================================================

QR_URL_REGEX = re.compile(
    r'\?ID=([A-F0-9-]{36})&RE=([A-ZÑ&0-9]{12,13})&RR=([A-ZÑ&0-9]{12,13})&TT=([0-9.]+)'
)


def find_qr_url(text: str) -> Optional[Dict[str, str]]:
    """
    Locate the full SAT verification URL printed under the QR code.

    Returns:
        Dictionary with uuid, rfc_emisor, rfc_receptor and total strings,
        or None if the URL is not in the text.
    """
    match = QR_URL_REGEX.search(text)
    if not match:
        return None
    return {
        'uuid': match.group(1),
        'rfc_emisor': match.group(2),
        'rfc_receptor': match.group(3),
        'total': match.group(4),
    }


# RE and RR values may contain "&" (e.g. P&G851223B24), which splits a query string
QR_RFC_PARAMETER_REGEX = re.compile(
    rf'(?:^|[?&])(RE|RR)=({RFC_PATTERN})(?=&|$)', re.IGNORECASE
)


QR_PARAMETER_RULES: List[ExtractionRule] = [
    regex_rule('re_parameter', 'rfc_emisor', rf'RE=({RFC_PATTERN})'),
    regex_rule('rr_parameter', 'rfc_receptor', rf'RR=({RFC_PATTERN})'),
    regex_rule('tt_parameter', 'total', r'TT=(\d+\.?\d*)'),
]


# =============================================================================
# RFC
# =============================================================================

RFC_TOKEN_REGEX = re.compile(r'\b([A-ZÑ&]{3,4})(\d{6})([A-Z0-9]{3})\b')


def find_rfcs(text: str) -> List[str]:
    """All RFC-shaped tokens in order of appearance, deduplicated."""
    found: List[str] = []
    for match in RFC_TOKEN_REGEX.finditer(text):
        rfc = match.group(0)
        if 12 <= len(rfc) <= 13 and rfc not in found:
            found.append(rfc)
    return found


# =============================================================================
# Total
# =============================================================================

@dataclass(frozen=True)
class TotalFamily:
    """A group of equivalent total patterns; any match is a candidate."""
    name: str
    pattern: Pattern

    def candidates(self, text: str) -> List[str]:
        return [match.group(1) for match in self.pattern.finditer(text)]


TOTAL_FAMILIES: List[TotalFamily] = [
    TotalFamily('total_comprobante', re.compile(r'TOTAL\s*COMPROBANTE[:\s]*\$?\s*([\d,]+\.?\d*)')),
    # Standalone TOTAL, not SUBTOTAL and not TOTAL IVA
    TotalFamily('total_label', re.compile(r'(?<!SUB)TOTAL(?!\s*IVA)[:\s$MXN]*\s*\$?\s*([\d,]+\.?\d*)')),
    TotalFamily('currency_amount', re.compile(r'\$\s*([\d,]+\.\d{2})')),
]
