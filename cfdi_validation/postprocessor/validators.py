"""
Data Validators Module.

This module provides validation functions for:
    - RFC (Mexican taxpayer identifier)
    - UUID (folio fiscal)
    - Total amounts
    - Required fiscal fields before a SAT query

Author: ML Engineering Team
"""

import re
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import ValidationError
from .normalizers import AmountNormalizer, IdentifierNormalizer

# Initialize module logger
logger = get_logger(__name__)


# Canonical shapes, matched against upper-cased text
RFC_PATTERN = r'[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}'
UUID_PATTERN = r'[A-F0-9]{8}-[A-F0-9]{4}-[A-F0-9]{4}-[A-F0-9]{4}-[A-F0-9]{12}'

RFC_REGEX = re.compile(rf'^{RFC_PATTERN}$')
UUID_REGEX = re.compile(rf'^{UUID_PATTERN}$')


class RfcValidator:
    """
    Validates RFC strings.

    Example:
        >>> RfcValidator().is_valid("AAA010101AAA")
        True
        >>> RfcValidator().validate("ABC")
        (False, 'RFC con formato inválido: ABC')
    """

    def is_valid(self, value: str) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: str) -> Tuple[bool, str]:
        """
        Validate an RFC with detailed feedback.

        Args:
            value: RFC to validate (case-insensitive).

        Returns:
            Tuple of (is_valid, message).
        """
        if not value or not str(value).strip():
            return False, "RFC vacío"

        rfc = str(value).strip().upper()
        if len(rfc) not in (12, 13) or not RFC_REGEX.match(rfc):
            return False, f"RFC con formato inválido: {rfc}"

        return True, "RFC válido"


class UuidValidator:
    """Validates the 36-character hyphenated folio fiscal."""

    def is_valid(self, value: str) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: str) -> Tuple[bool, str]:
        if not value or not str(value).strip():
            return False, "UUID vacío"

        uuid = str(value).strip().upper()
        if not UUID_REGEX.match(uuid):
            return False, f"UUID con formato inválido: {uuid}"

        return True, "UUID válido"


class AmountValidator:
    """
    Validates invoice totals.

    Zero is admissible: payment-receipt CFDIs are stamped with total 0.

    Example:
        >>> AmountValidator().validate("-100")
        (False, 'El total no puede ser negativo')
    """

    def __init__(self) -> None:
        self.normalizer = AmountNormalizer()
        self.max_amount = Decimal(str(get_config("parser.max_total", 10000000)))

    def is_valid(self, value: Any) -> bool:
        valid, _ = self.validate(value)
        return valid

    def validate(self, value: Any) -> Tuple[bool, str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return False, "Total vacío"

        amount = self.normalizer.to_decimal(value)
        if amount is None:
            return False, f"Total inválido: {value}"

        if amount < 0:
            return False, "El total no puede ser negativo"

        return True, "Total válido"

    def is_admissible_total(self, amount: Decimal) -> bool:
        """
        Check whether an amount found in document text can be a total.

        Values at or above the configured ceiling are OCR artifacts
        (concatenated digits, account numbers).
        """
        return Decimal(0) < amount < self.max_amount


class FieldValidator:
    """
    Validates the four fields required for a SAT query.

    Example:
        >>> validator = FieldValidator()
        >>> validator.require_fiscal_fields(
        ...     rfcEmisor="AAA010101AAA", rfcReceptor="XAXX010101000",
        ...     total="500", uuid="ABCDEF12-0000-0000-0000-000000000000")
    """

    REQUIRED_FIELDS = ['rfcEmisor', 'rfcReceptor', 'total', 'uuid']

    FIELD_LABELS = {
        'rfcEmisor': 'RFC Emisor',
        'rfcReceptor': 'RFC Receptor',
        'total': 'Total',
        'uuid': 'UUID',
    }

    def __init__(self) -> None:
        self.rfc_validator = RfcValidator()
        self.uuid_validator = UuidValidator()
        self.amount_validator = AmountValidator()
        self.identifiers = IdentifierNormalizer()

    def validate_field(self, field_name: str, value: Any) -> Tuple[bool, str]:
        """
        Validate a specific field by name.

        Args:
            field_name: Caller-visible field name (rfcEmisor, uuid, ...).
            value: Field value to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        validators = {
            'rfcEmisor': self.rfc_validator.validate,
            'rfcReceptor': self.rfc_validator.validate,
            'uuid': self.uuid_validator.validate,
            'total': self.amount_validator.validate,
        }

        validator = validators.get(field_name)
        if validator:
            return validator(value)

        if value:
            return True, "Field has value"
        return False, "Field is empty"

    def check_required_fields(self, fields: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Check if all required fields are present.

        Returns:
            Tuple of (all_present, list of missing field names).
        """
        missing = []

        for required in self.REQUIRED_FIELDS:
            value = fields.get(required)
            if value is None or str(value).strip() == "":
                missing.append(required)

        return len(missing) == 0, missing

    def require_fiscal_fields(self, **fields: Any) -> None:
        """
        Reject a SAT query whose inputs are missing or malformed.

        Raises:
            ValidationError: Naming the first offending field.
        """
        _, missing = self.check_required_fields(fields)
        if missing:
            field = missing[0]
            raise ValidationError(
                field,
                fields.get(field),
                f"{self.FIELD_LABELS[field]} es requerido"
            )

        for field in self.REQUIRED_FIELDS:
            valid, message = self.validate_field(field, fields[field])
            if not valid:
                logger.warning(f"Rejected SAT query input {field}: {message}")
                raise ValidationError(field, fields[field], message)
