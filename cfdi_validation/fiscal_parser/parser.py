"""
Fiscal Data Parser Module.

Turns free text (direct PDF text, OCR output or a decoded QR payload) into
a FiscalTuple using the ordered rule lists in rules.py.

Parsing order:
    1. Normalize whitespace and case
    2. UUID rules
    3. SAT verification URL (full URL, then individual parameters)
    4. RFC enumeration and issuer/receiver assignment
    5. Total families
    6. Generic-issuer correction

Author: ML Engineering Team
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qsl

from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import mask_uuid
from cfdi_validation.postprocessor import (
    AmountNormalizer,
    AmountValidator,
    RfcValidator,
    UuidValidator,
)
from .catalogs import RfcCatalog
from .fiscal_tuple import FiscalTuple
from .rules import (
    ExtractionRule,
    UUID_RULES,
    QR_PARAMETER_RULES,
    QR_RFC_PARAMETER_REGEX,
    TOTAL_FAMILIES,
    find_qr_url,
    find_rfcs,
)

# Initialize module logger
logger = get_logger(__name__)


TWO_PLACES = Decimal("0.01")

# Regex fallback for QR payloads that are not parseable query strings
QR_KEY_REGEX = re.compile(r'(?:^|[?&\s])(ID|RE|RR|TT|FE)=([^&\s]*)')
AMP_ENTITY_REGEX = re.compile(r'&amp;', re.IGNORECASE)


class FiscalDataParser:
    """
    Extracts the fiscal tuple from document text.

    Never raises on content: fields that cannot be found stay None.

    Example:
        >>> parser = FiscalDataParser()
        >>> result = parser.parse(pdf_text)
        >>> result.rfc_emisor, result.total
        ('AAA010101AAA', Decimal('1234.56'))
    """

    def __init__(self, catalog: Optional[RfcCatalog] = None):
        """
        Initialize the parser.

        Args:
            catalog: Certifier and generic RFC sets. Loaded from
                configuration if not provided.
        """
        self.catalog = catalog or RfcCatalog.from_config()
        self.amounts = AmountNormalizer()
        self.amount_validator = AmountValidator()
        self.rfc_validator = RfcValidator()
        self.uuid_validator = UuidValidator()

    # =========================================================================
    # Document text
    # =========================================================================

    def parse(self, text: Optional[str]) -> FiscalTuple:
        """
        Extract the fiscal tuple from document text.

        Args:
            text: Raw text from any source.

        Returns:
            FiscalTuple with fuente='texto'.
        """
        if not text or not text.strip():
            logger.debug("Empty text, nothing to parse")
            return FiscalTuple(fuente='texto')

        normalized = self._normalize_text(text)
        values: Dict[str, Any] = {
            'uuid': None,
            'rfc_emisor': None,
            'rfc_receptor': None,
            'total': None,
        }

        self._apply_rules(UUID_RULES, normalized, values)

        qr_url = find_qr_url(normalized)
        if qr_url:
            logger.debug("SAT verification URL found in text")
            for field_name, raw in qr_url.items():
                self._fill(values, field_name, raw, 'qr_url')
        else:
            self._apply_rules(QR_PARAMETER_RULES, normalized, values)

        rfcs = [
            rfc for rfc in find_rfcs(normalized)
            if not self.catalog.is_certifier(rfc)
        ]
        self._assign_rfcs(values, rfcs)

        if values['total'] is None:
            values['total'] = self._extract_total(normalized)

        if self.catalog.is_generic(values['rfc_emisor']):
            logger.debug("Issuer RFC is generic, swapping issuer and receiver")
            values['rfc_emisor'], values['rfc_receptor'] = (
                values['rfc_receptor'], values['rfc_emisor']
            )

        result = FiscalTuple(rfcs_encontrados=rfcs, fuente='texto', **values)
        logger.info(
            f"Parsed fiscal data: uuid={mask_uuid(result.uuid)}, "
            f"missing={result.missing_fields() or 'none'}"
        )
        return result

    def _normalize_text(self, text: str) -> str:
        return re.sub(r'\s+', ' ', text).upper()

    def _apply_rules(self, rules: Iterable[ExtractionRule], text: str, values: Dict[str, Any]) -> None:
        """Run rules in order; each only fills a field that is still empty."""
        for rule in rules:
            if values.get(rule.field) is not None:
                continue
            raw = rule.extract(text)
            if raw:
                self._fill(values, rule.field, raw, rule.name)

    def _fill(self, values: Dict[str, Any], field_name: str, raw: str, source: str) -> None:
        if values.get(field_name) is not None:
            return

        value = self._coerce(field_name, raw)
        if value is None:
            logger.debug(f"Rule {source} matched an invalid {field_name}: {raw!r}")
            return

        values[field_name] = value
        logger.debug(f"{field_name} filled by rule {source}")

    def _coerce(self, field_name: str, raw: str) -> Any:
        """Convert a matched string into a field value, or None if it is malformed."""
        if field_name == 'total':
            return self._to_total(raw)

        value = raw.strip().upper()
        if field_name == 'uuid':
            return value if self.uuid_validator.is_valid(value) else None
        return value if self.rfc_validator.is_valid(value) else None

    def _to_total(self, raw: str) -> Optional[Decimal]:
        amount = self.amounts.to_decimal(raw)
        if amount is None or amount < 0:
            return None
        return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def _assign_rfcs(self, values: Dict[str, Any], rfcs: List[str]) -> None:
        """
        Assign issuer and receiver from the found RFCs.

        Generic RFCs may only be the receiver. The issuer is the first
        non-generic RFC not already assigned; the next one is the receiver.
        """
        generic = [rfc for rfc in rfcs if self.catalog.is_generic(rfc)]

        if generic and values['rfc_receptor'] is None:
            values['rfc_receptor'] = generic[0]

        assigned = {values['rfc_emisor'], values['rfc_receptor']}
        available = [
            rfc for rfc in rfcs
            if not self.catalog.is_generic(rfc) and rfc not in assigned
        ]

        if values['rfc_emisor'] is None and available:
            values['rfc_emisor'] = available.pop(0)
        if values['rfc_receptor'] is None and available:
            values['rfc_receptor'] = available.pop(0)

    def _extract_total(self, text: str) -> Optional[Decimal]:
        """
        First family with an admissible candidate wins; within it, the
        largest admissible value.
        """
        for family in TOTAL_FAMILIES:
            admissible = []
            for raw in family.candidates(text):
                amount = self.amounts.to_decimal(raw)
                if amount is not None and self.amount_validator.is_admissible_total(amount):
                    admissible.append(amount)

            if admissible:
                total = max(admissible)
                logger.debug(f"Total {total} from family {family.name}")
                return total.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

        return None

    # =========================================================================
    # QR payload
    # =========================================================================

    def parse_qr_url(self, qr_string: Optional[str]) -> FiscalTuple:
        """
        Parse the SAT verification URL encoded in a CFDI QR code.

        Accepts a full URL or a bare query string. Keys are matched
        case-insensitively; values breaking the UUID or RFC format are
        dropped.

        Example:
            >>> parser.parse_qr_url(
            ...     "https://verificacfdi.facturaelectronica.sat.gob.mx/"
            ...     "default.aspx?id=...&re=AAA010101AAA&rr=XAXX010101000"
            ...     "&tt=0000001234.560000&fe=AbCd1234")
        """
        if not qr_string or not qr_string.strip():
            return FiscalTuple(fuente='qr')

        params = self._query_params(qr_string.strip())

        values: Dict[str, Any] = {
            'uuid': None,
            'rfc_emisor': None,
            'rfc_receptor': None,
            'total': None,
        }
        for key, field_name in (('id', 'uuid'), ('re', 'rfc_emisor'),
                                ('rr', 'rfc_receptor'), ('tt', 'total')):
            if params.get(key):
                self._fill(values, field_name, params[key], f'qr_{key}')

        rfcs = [rfc for rfc in (values['rfc_emisor'], values['rfc_receptor']) if rfc]
        result = FiscalTuple(
            rfcs_encontrados=rfcs,
            sello_ultimos8=params.get('fe') or None,
            fuente='qr',
            **values
        )
        logger.debug(f"Parsed QR payload: uuid={mask_uuid(result.uuid)}")
        return result

    def _query_params(self, qr_string: str) -> Dict[str, str]:
        query = qr_string.split('?', 1)[1] if '?' in qr_string else qr_string
        query = AMP_ENTITY_REGEX.sub('&', query)

        params: Dict[str, str] = {}
        for key, value in parse_qsl(query, keep_blank_values=True):
            params.setdefault(key.strip().lower(), value.strip())

        for key, value in reversed(QR_RFC_PARAMETER_REGEX.findall(query)):
            params[key.lower()] = value

        if not any(params.get(k) for k in ('id', 're', 'rr', 'tt')):
            for key, value in QR_KEY_REGEX.findall(qr_string.upper()):
                params.setdefault(key.lower(), value)

        return params


# Default parser for module-level helpers
_default_parser: Optional[FiscalDataParser] = None


def _get_default_parser() -> FiscalDataParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = FiscalDataParser()
    return _default_parser


def parse_text(text: Optional[str]) -> FiscalTuple:
    """Parse document text with the default parser."""
    return _get_default_parser().parse(text)


def parse_qr_url(qr_string: Optional[str]) -> FiscalTuple:
    """Parse a SAT QR payload with the default parser."""
    return _get_default_parser().parse_qr_url(qr_string)
