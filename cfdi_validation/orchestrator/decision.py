"""
Validation Decision Data Classes.

Classes:
    ValidationStage: Steps of a validation flow
    ValidationDecision: Caller-visible outcome of a validation flow

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from cfdi_validation.utils.helpers import iso_timestamp
from cfdi_validation.fiscal_parser import FiscalTuple
from cfdi_validation.reconciliation import ReconciliationResult
from cfdi_validation.sat_client import AuthorityStatus, EstadoSAT


class ValidationStage(Enum):
    """Flow steps, executed strictly in this order."""
    EXTRACTING = "extrayendo"
    PARSING = "analizando"
    RECONCILING = "conciliando"
    AUTHORIZING = "autorizando"
    DONE = "terminado"


FIELD_LABELS = {
    'uuid': 'UUID',
    'rfcEmisor': 'RFC Emisor',
    'rfcReceptor': 'RFC Receptor',
    'total': 'Total',
}


@dataclass
class ValidationDecision:
    """
    Outcome of a validation flow.

    Attributes:
        success: The flow reached a verdict
        estado: Normalized SAT status (or Sin Verificar when not queried)
        es_valida: Invoice accepted
        es_cancelada: SAT reports the CFDI cancelled
        no_encontrada: SAT does not know the CFDI
        permitir_guardar: Caller may store the invoice
        mensaje: Human-readable summary
        codigo_estatus: Raw SAT status code
        flujo: Flow that produced the decision (pdf, imagen, qr)
        etapa: Last stage executed before finishing
        metodo_extraccion: How the fiscal data was obtained
        datos_extraidos: Fiscal tuple used for the verdict
        datos_faltantes: Required fields that could not be found
        reconciliacion: Evidence vs record comparison, if any
        from_cache: SAT status served from cache
        timestamp: ISO-8601 creation time
    """
    success: bool
    estado: str
    es_valida: bool
    es_cancelada: bool
    no_encontrada: bool
    permitir_guardar: bool
    mensaje: str
    flujo: str
    etapa: ValidationStage
    codigo_estatus: Optional[str] = None
    metodo_extraccion: Optional[str] = None
    datos_extraidos: Optional[FiscalTuple] = None
    datos_faltantes: List[str] = field(default_factory=list)
    reconciliacion: Optional[ReconciliationResult] = None
    from_cache: bool = False
    timestamp: str = field(default_factory=iso_timestamp)

    @classmethod
    def from_authority(
        cls,
        status: AuthorityStatus,
        flujo: str,
        metodo_extraccion: Optional[str],
        datos: FiscalTuple,
        reconciliacion: Optional[ReconciliationResult] = None
    ) -> 'ValidationDecision':
        return cls(
            success=status.success,
            estado=status.estado.value,
            es_valida=status.es_valida,
            es_cancelada=status.es_cancelada,
            no_encontrada=status.no_encontrada,
            permitir_guardar=status.permitir_guardar,
            mensaje=status.mensaje,
            codigo_estatus=status.codigo_estatus,
            flujo=flujo,
            etapa=ValidationStage.AUTHORIZING,
            metodo_extraccion=metodo_extraccion,
            datos_extraidos=datos,
            reconciliacion=reconciliacion,
            from_cache=status.from_cache,
            timestamp=status.timestamp,
        )

    @classmethod
    def incomplete(
        cls,
        flujo: str,
        etapa: ValidationStage,
        metodo_extraccion: Optional[str],
        datos: Optional[FiscalTuple],
        mensaje: Optional[str] = None,
        reconciliacion: Optional[ReconciliationResult] = None
    ) -> 'ValidationDecision':
        """Evidence was insufficient; storing is allowed for manual review."""
        missing = datos.missing_fields() if datos is not None else list(FIELD_LABELS)
        if mensaje is None:
            labels = ', '.join(FIELD_LABELS[name] for name in missing)
            mensaje = f"No se encontraron todos los datos fiscales. Faltan: {labels}"

        return cls(
            success=False,
            estado=EstadoSAT.SIN_VERIFICAR.value,
            es_valida=False,
            es_cancelada=False,
            no_encontrada=False,
            permitir_guardar=True,
            mensaje=mensaje,
            flujo=flujo,
            etapa=etapa,
            metodo_extraccion=metodo_extraccion,
            datos_extraidos=datos,
            datos_faltantes=missing,
            reconciliacion=reconciliacion,
        )

    @classmethod
    def from_reconciliation(
        cls,
        result: ReconciliationResult,
        flujo: str,
        metodo_extraccion: Optional[str],
        datos: FiscalTuple
    ) -> 'ValidationDecision':
        """QR vs record outcome. Advisory only: never blocks storing."""
        return cls(
            success=True,
            estado=EstadoSAT.SIN_VERIFICAR.value,
            es_valida=result.coinciden,
            es_cancelada=False,
            no_encontrada=False,
            permitir_guardar=True,
            mensaje=result.mensaje,
            flujo=flujo,
            etapa=ValidationStage.RECONCILING,
            metodo_extraccion=metodo_extraccion,
            datos_extraidos=datos,
            reconciliacion=result,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'estado': self.estado,
            'esValida': self.es_valida,
            'esCancelada': self.es_cancelada,
            'noEncontrada': self.no_encontrada,
            'permitirGuardar': self.permitir_guardar,
            'mensaje': self.mensaje,
            'codigoEstatus': self.codigo_estatus,
            'timestamp': self.timestamp,
            'flujo': self.flujo,
            'etapa': self.etapa.value,
            'metodoExtraccion': self.metodo_extraccion,
            'datosExtraidos': self.datos_extraidos.to_dict() if self.datos_extraidos else None,
            'datosFaltantes': list(self.datos_faltantes),
            'reconciliacion': self.reconciliacion.to_dict() if self.reconciliacion else None,
            'fromCache': self.from_cache,
        }
