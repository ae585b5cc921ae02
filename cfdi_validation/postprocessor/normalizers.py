"""
Data Normalizers Module.

This module provides normalization functions for:
    - Currency/amount values (to Decimal)
    - Fiscal identifiers (RFC and UUID)

Author: ML Engineering Team
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from cfdi_validation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


TWO_PLACES = Decimal("0.01")


class AmountNormalizer:
    """
    Normalizes currency/amount values to Decimal.

    Handles peso signs, currency codes, thousand separators and SAT's
    zero-padded QR totals ("0000001234.560000").

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.to_decimal("$1,234.56")
        Decimal('1234.56')
        >>> normalizer.format_two_decimals("500")
        '500.00'
    """

    CURRENCY_SYMBOLS = ['$']
    CURRENCY_CODES = ['MXN', 'M.N.', 'USD', 'PESOS']

    def to_decimal(self, value: Any) -> Optional[Decimal]:
        """
        Convert an amount in any supported representation to Decimal.

        Args:
            value: Decimal, int, float or string amount.

        Returns:
            Decimal value, or None if the value is not a number.
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, Decimal):
            return value if value.is_finite() else None

        if isinstance(value, int):
            return Decimal(value)

        if isinstance(value, float):
            # str() keeps the shortest repr, avoiding binary float noise
            amount = Decimal(str(value))
            return amount if amount.is_finite() else None

        cleaned = self._clean_amount_string(str(value))
        if not cleaned:
            return None

        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            logger.debug(f"Could not parse amount: {value!r}")
            return None

        return amount if amount.is_finite() else None

    def _clean_amount_string(self, amount_str: str) -> str:
        """
        Strip currency markers and thousand separators.

        Args:
            amount_str: Raw amount string.

        Returns:
            Cleaned numeric string (may be empty).
        """
        amount_str = amount_str.strip().upper()

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')
        for code in self.CURRENCY_CODES:
            amount_str = amount_str.replace(code, '')

        amount_str = amount_str.replace(',', '').replace(' ', '')

        if not re.fullmatch(r'-?\d+(\.\d*)?|-?\.\d+', amount_str):
            return ''
        return amount_str

    def format_two_decimals(self, value: Any) -> Optional[str]:
        """
        Format an amount with exactly two decimals, rounding half up.

        Example:
            >>> AmountNormalizer().format_two_decimals("1234.565")
            '1234.57'
        """
        amount = self.to_decimal(value)
        if amount is None:
            return None
        return str(amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


class IdentifierNormalizer:
    """Upper-cases and trims RFC and UUID strings."""

    @staticmethod
    def normalize(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().upper()
        return text or None

    def normalize_rfc(self, value: Any) -> Optional[str]:
        return self.normalize(value)

    def normalize_uuid(self, value: Any) -> Optional[str]:
        return self.normalize(value)
