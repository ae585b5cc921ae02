"""
RFC Catalogs.

Fixed RFC lists the parser needs to assign issuer and receiver:
certifier (PAC) RFCs, which appear in the timbre but are never a party to
the invoice, and generic RFCs, which are only ever receivers.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from config import get_config


DEFAULT_CERTIFIER_RFCS = frozenset({
    'SNF171020F3A',
    'FLI081010EK2',
    'TSO211020B22',
    'SAT970701NN3',
    'MAS0810247C0',
    'SFE0807172W7',
    'LSO1306189R5',
})

DEFAULT_GENERIC_RFCS = frozenset({
    'XAXX010101000',  # Público en general
    'XEXX010101000',  # Residentes en el extranjero
})


@dataclass(frozen=True)
class RfcCatalog:
    """
    Immutable certifier and generic RFC sets.

    Example:
        >>> catalog = RfcCatalog.from_config()
        >>> catalog.is_generic("XAXX010101000")
        True
    """
    certifier_rfcs: FrozenSet[str] = DEFAULT_CERTIFIER_RFCS
    generic_rfcs: FrozenSet[str] = DEFAULT_GENERIC_RFCS

    @classmethod
    def from_config(cls) -> 'RfcCatalog':
        """Load catalogs from settings, falling back to built-in lists."""
        return cls(
            certifier_rfcs=_as_frozenset(
                get_config('parser.certifier_rfcs'), DEFAULT_CERTIFIER_RFCS
            ),
            generic_rfcs=_as_frozenset(
                get_config('parser.generic_rfcs'), DEFAULT_GENERIC_RFCS
            ),
        )

    def is_certifier(self, rfc: str) -> bool:
        return rfc in self.certifier_rfcs

    def is_generic(self, rfc: Optional[str]) -> bool:
        return rfc is not None and rfc in self.generic_rfcs


def _as_frozenset(values: Optional[Iterable[str]], default: FrozenSet[str]) -> FrozenSet[str]:
    if not values:
        return default
    return frozenset(str(v).strip().upper() for v in values)
