"""
Reconciliation Result Data Classes.

Classes:
    ReconciliationMode: How strictly two tuples are compared
    FieldDifference: One field that differs between reference and candidate
    ReconciliationResult: Outcome of a comparison
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReconciliationMode(Enum):
    """
    STRICT: every difference is critical, totals within 0.01.
    LENIENT: only a UUID difference is critical, totals within 5%.
    """
    STRICT = "estricto"
    LENIENT = "flexible"


@dataclass
class FieldDifference:
    """
    A field whose values disagree.

    Attributes:
        campo: Field label (UUID, RFC Emisor, RFC Receptor, Total)
        valor_a: Reference value
        valor_b: Candidate value
        critico: Whether the difference rejects the match
        diferencia: Absolute difference, totals only
    """
    campo: str
    valor_a: Optional[str]
    valor_b: Optional[str]
    critico: bool
    diferencia: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'campo': self.campo,
            'valorA': self.valor_a,
            'valorB': self.valor_b,
            'critico': self.critico,
        }
        if self.diferencia is not None:
            result['diferencia'] = self.diferencia
        return result


@dataclass
class ReconciliationResult:
    """
    Outcome of reconciling a candidate tuple against a reference.

    coinciden is true iff no difference is critical.
    """
    coinciden: bool
    modo: ReconciliationMode
    diferencias: List[FieldDifference] = field(default_factory=list)
    advertencias: List[str] = field(default_factory=list)
    coincidencias: int = 0
    total_comparaciones: int = 0
    mensaje: str = ""

    @property
    def porcentaje_coincidencia(self) -> int:
        if self.total_comparaciones == 0:
            return 0
        return int(round(self.coincidencias / self.total_comparaciones * 100))

    @property
    def diferencias_criticas(self) -> List[FieldDifference]:
        return [d for d in self.diferencias if d.critico]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'coinciden': self.coinciden,
            'modo': self.modo.value,
            'diferencias': [d.to_dict() for d in self.diferencias],
            'advertencias': list(self.advertencias),
            'coincidencias': self.coincidencias,
            'totalComparaciones': self.total_comparaciones,
            'porcentajeCoincidencia': self.porcentaje_coincidencia,
            'mensaje': self.mensaje,
        }
