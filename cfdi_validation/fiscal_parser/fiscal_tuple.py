"""
Fiscal Tuple Data Class.

The four fields the SAT needs to look up a CFDI (UUID, issuer RFC,
receiver RFC and total), plus the supporting evidence collected while
extracting them.

Classes:
    FiscalTuple: Fiscal identity of one invoice

Author: ML Engineering Team
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional

from cfdi_validation.postprocessor import (
    AmountNormalizer,
    IdentifierNormalizer,
    FieldValidator,
)
from cfdi_validation.utils.exceptions import ValidationError


# Internal attribute name -> caller-visible key
FIELD_KEYS = {
    'uuid': 'uuid',
    'rfc_emisor': 'rfcEmisor',
    'rfc_receptor': 'rfcReceptor',
    'total': 'total',
}


@dataclass
class FiscalTuple:
    """
    Fiscal identity of a CFDI.

    Attributes:
        uuid: Folio fiscal, upper-cased 36-character hyphenated hex
        rfc_emisor: Issuer RFC
        rfc_receptor: Receiver RFC
        total: Invoice total
        rfcs_encontrados: Every non-certifier RFC seen in the source, in order
        sello_ultimos8: Last 8 characters of the issuer seal (QR 'fe')
        fuente: Source that produced the tuple (texto, qr, xml, manual)

    Example:
        >>> t = FiscalTuple(uuid="6F1D...", rfc_emisor="AAA010101AAA")
        >>> t.missing_fields()
        ['rfcReceptor', 'total']
    """
    uuid: Optional[str] = None
    rfc_emisor: Optional[str] = None
    rfc_receptor: Optional[str] = None
    total: Optional[Decimal] = None
    rfcs_encontrados: List[str] = field(default_factory=list)
    sello_ultimos8: Optional[str] = None
    fuente: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """Caller-visible names of the required fields still empty."""
        return [
            key for attr, key in FIELD_KEYS.items()
            if getattr(self, attr) is None
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def is_empty(self) -> bool:
        return len(self.missing_fields()) == len(FIELD_KEYS)

    def fill_missing(self, other: 'FiscalTuple') -> 'FiscalTuple':
        """
        Return a copy whose empty fields are taken from another tuple.

        Fields already present are never overwritten. Found RFCs are merged
        keeping first-seen order.
        """
        updates = {
            attr: getattr(other, attr)
            for attr in list(FIELD_KEYS) + ['sello_ultimos8']
            if getattr(self, attr) is None and getattr(other, attr) is not None
        }

        merged_rfcs = list(self.rfcs_encontrados)
        for rfc in other.rfcs_encontrados:
            if rfc not in merged_rfcs:
                merged_rfcs.append(rfc)
        updates['rfcs_encontrados'] = merged_rfcs

        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary with caller-visible keys."""
        return {
            'uuid': self.uuid,
            'rfcEmisor': self.rfc_emisor,
            'rfcReceptor': self.rfc_receptor,
            'total': float(self.total) if self.total is not None else None,
            'rfcsEncontrados': list(self.rfcs_encontrados),
            'selloUltimos8': self.sello_ultimos8,
            'fuente': self.fuente,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], fuente: str = 'manual') -> 'FiscalTuple':
        """
        Build a tuple from a caller-supplied record.

        Accepts caller-visible keys (rfcEmisor) or attribute names
        (rfc_emisor). Absent fields stay None; present fields must be
        well formed.

        Raises:
            ValidationError: If a present field is malformed.
        """
        if not isinstance(data, dict):
            raise ValidationError('registro', data, 'El registro debe ser un diccionario')

        validator = FieldValidator()
        identifiers = IdentifierNormalizer()
        values: Dict[str, Any] = {}

        for attr, key in FIELD_KEYS.items():
            raw = data.get(key, data.get(attr))
            if raw is None or str(raw).strip() == '':
                values[attr] = None
                continue

            valid, message = validator.validate_field(key, raw)
            if not valid:
                raise ValidationError(key, raw, message)

            if attr == 'total':
                values[attr] = AmountNormalizer().to_decimal(raw)
            else:
                values[attr] = identifiers.normalize(raw)

        rfcs = data.get('rfcsEncontrados', data.get('rfcs_encontrados')) or []
        values['rfcs_encontrados'] = list(dict.fromkeys(
            identifiers.normalize(rfc) for rfc in rfcs if rfc
        ))
        values['sello_ultimos8'] = data.get('selloUltimos8', data.get('sello_ultimos8'))

        return cls(fuente=data.get('fuente', fuente), **values)
