"""
Authority Status Data Classes.

Classes:
    EstadoSAT: Normalized CFDI status
    AuthorityStatus: Outcome of a SAT status query, as shown to callers

Author: ML Engineering Team
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from cfdi_validation.utils.helpers import iso_timestamp


class EstadoSAT(Enum):
    """Normalized status of a CFDI."""
    VIGENTE = "Vigente"
    CANCELADO = "Cancelado"
    NO_ENCONTRADO = "No Encontrado"
    SIN_VERIFICAR = "Sin Verificar"
    ERROR = "Error"


NOT_FOUND_CODES = ('N - 601', 'N - 602')


@dataclass
class AuthorityStatus:
    """
    Result of querying the SAT for one CFDI.

    permitir_guardar is true only for a Vigente CFDI, or when the SAT
    could not be reached at all (the invoice may be stored with a warning).

    Attributes:
        estado: Normalized status
        es_valida: CFDI is Vigente and not cancelled
        es_cancelada: CFDI was cancelled
        no_encontrada: SAT does not know the CFDI (possible forgery)
        permitir_guardar: Caller may store the invoice
        mensaje: Human-readable summary
        estado_sat: Raw Estado returned by the SAT
        codigo_estatus: Raw CodigoEstatus
        es_cancelable: Raw EsCancelable
        estatus_cancelacion: Raw EstatusCancelacion
        validacion_efos: Raw ValidacionEFOS
        uuid: Queried UUID
        success: The SAT answered with a parseable response
        error: Failure description when success is false
        from_cache: Served from the local cache
        timestamp: ISO-8601 time the status was produced
    """
    estado: EstadoSAT
    es_valida: bool = False
    es_cancelada: bool = False
    no_encontrada: bool = False
    permitir_guardar: bool = False
    mensaje: str = ""
    estado_sat: Optional[str] = None
    codigo_estatus: Optional[str] = None
    es_cancelable: Optional[str] = None
    estatus_cancelacion: Optional[str] = None
    validacion_efos: Optional[str] = None
    uuid: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    from_cache: bool = False
    timestamp: str = field(default_factory=iso_timestamp)

    @classmethod
    def from_consulta(
        cls,
        uuid: str,
        estado: Optional[str],
        codigo_estatus: Optional[str] = None,
        es_cancelable: Optional[str] = None,
        estatus_cancelacion: Optional[str] = None,
        validacion_efos: Optional[str] = None
    ) -> 'AuthorityStatus':
        """
        Map the raw fields of a SAT Consulta response to a status.

        Precedence: cancelled, not found, valid, unknown.
        """
        raw_estado = (estado or '').strip()
        codigo = codigo_estatus or ''

        es_cancelada = (
            raw_estado == EstadoSAT.CANCELADO.value
            or (estatus_cancelacion or '').strip().startswith('Cancelado')
        )
        no_encontrada = (
            raw_estado == EstadoSAT.NO_ENCONTRADO.value
            or any(code in codigo for code in NOT_FOUND_CODES)
        )
        es_valida = (
            raw_estado == EstadoSAT.VIGENTE.value
            and not es_cancelada
            and not no_encontrada
        )

        if es_cancelada:
            normalized = EstadoSAT.CANCELADO
            mensaje = "Factura CANCELADA - No se puede registrar"
        elif no_encontrada:
            normalized = EstadoSAT.NO_ENCONTRADO
            mensaje = "Factura no encontrada en SAT - Posible factura apócrifa"
        elif es_valida:
            normalized = EstadoSAT.VIGENTE
            mensaje = "Factura vigente en el SAT"
        else:
            normalized = EstadoSAT.ERROR
            mensaje = f"Estado desconocido: {raw_estado or 'vacío'}"

        return cls(
            estado=normalized,
            es_valida=es_valida,
            es_cancelada=es_cancelada,
            no_encontrada=no_encontrada and not es_cancelada,
            permitir_guardar=es_valida,
            mensaje=mensaje,
            estado_sat=raw_estado or None,
            codigo_estatus=codigo_estatus,
            es_cancelable=es_cancelable,
            estatus_cancelacion=estatus_cancelacion,
            validacion_efos=validacion_efos,
            uuid=uuid,
        )

    @classmethod
    def unverified(cls, uuid: Optional[str], error: str, mensaje: str) -> 'AuthorityStatus':
        """The SAT could not be reached; storing is allowed with a warning."""
        return cls(
            estado=EstadoSAT.SIN_VERIFICAR,
            permitir_guardar=True,
            mensaje=mensaje,
            uuid=uuid,
            success=False,
            error=error,
        )

    @classmethod
    def failed(cls, uuid: Optional[str], error: str) -> 'AuthorityStatus':
        """The SAT answered but the answer could not be used."""
        return cls(
            estado=EstadoSAT.ERROR,
            permitir_guardar=False,
            mensaje=f"Error al validar: {error}",
            uuid=uuid,
            success=False,
            error=error,
        )

    def copy(self, **changes: Any) -> 'AuthorityStatus':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the caller-visible decision dictionary."""
        result = {
            'success': self.success,
            'estado': self.estado.value,
            'esValida': self.es_valida,
            'esCancelada': self.es_cancelada,
            'noEncontrada': self.no_encontrada,
            'permitirGuardar': self.permitir_guardar,
            'mensaje': self.mensaje,
            'codigoEstatus': self.codigo_estatus,
            'timestamp': self.timestamp,
            'uuid': self.uuid,
            'estadoSAT': self.estado_sat,
            'esCancelable': self.es_cancelable,
            'estatusCancelacion': self.estatus_cancelacion,
            'validacionEFOS': self.validacion_efos,
            'fromCache': self.from_cache,
        }
        if self.error:
            result['error'] = self.error
        return result
