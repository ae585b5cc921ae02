"""
Evidence Reconciler Module.

Compares a candidate fiscal tuple (from a QR code or OCR) against a
reference tuple (the structured record, usually the CFDI XML).

Modes:
    STRICT: used for QR vs record. Any difference is critical.
    LENIENT: used for OCR vs record. OCR misreads RFCs and amounts, so
        only a UUID difference is critical.

Author: ML Engineering Team
"""

from decimal import Decimal
from typing import Optional

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.fiscal_parser import FiscalTuple
from .reconciliation_result import (
    FieldDifference,
    ReconciliationMode,
    ReconciliationResult,
)

# Initialize module logger
logger = get_logger(__name__)


FIELD_LABELS = {
    'uuid': 'UUID',
    'rfc_emisor': 'RFC Emisor',
    'rfc_receptor': 'RFC Receptor',
    'total': 'Total',
}


class EvidenceReconciler:
    """
    Field-by-field comparison of two fiscal tuples.

    Only fields present in both tuples are compared. Pure: no I/O and
    neither tuple is modified.

    Example:
        >>> reconciler = EvidenceReconciler()
        >>> result = reconciler.reconcile(xml_tuple, qr_tuple, ReconciliationMode.STRICT)
        >>> result.coinciden, result.porcentaje_coincidencia
        (True, 100)
    """

    def __init__(
        self,
        strict_tolerance: Optional[Decimal] = None,
        lenient_ratio: Optional[Decimal] = None
    ):
        """
        Args:
            strict_tolerance: Absolute total tolerance in STRICT mode.
            lenient_ratio: Total tolerance in LENIENT mode, as a fraction
                of the reference total.
        """
        self.strict_tolerance = Decimal(str(
            strict_tolerance if strict_tolerance is not None
            else get_config('reconciliation.strict_total_tolerance', '0.01')
        ))
        self.lenient_ratio = Decimal(str(
            lenient_ratio if lenient_ratio is not None
            else get_config('reconciliation.lenient_total_ratio', '0.05')
        ))

    def reconcile(
        self,
        reference: FiscalTuple,
        candidate: FiscalTuple,
        mode: ReconciliationMode = ReconciliationMode.STRICT
    ) -> ReconciliationResult:
        """
        Compare candidate against reference.

        Args:
            reference: Trusted tuple (structured record).
            candidate: Tuple recovered from document evidence.
            mode: STRICT or LENIENT.

        Returns:
            ReconciliationResult.
        """
        result = ReconciliationResult(coinciden=True, modo=mode)

        for attr in ('uuid', 'rfc_emisor', 'rfc_receptor'):
            self._compare_identifier(attr, reference, candidate, result)

        self._compare_total(reference, candidate, result)

        result.coinciden = not result.diferencias_criticas
        result.mensaje = self._build_message(result)

        logger.info(
            f"Reconciliation ({mode.value}): coinciden={result.coinciden}, "
            f"{result.coincidencias}/{result.total_comparaciones} fields match"
        )
        return result

    def _compare_identifier(
        self,
        attr: str,
        reference: FiscalTuple,
        candidate: FiscalTuple,
        result: ReconciliationResult
    ) -> None:
        ref_value = getattr(reference, attr)
        cand_value = getattr(candidate, attr)
        if ref_value is None or cand_value is None:
            return

        result.total_comparaciones += 1
        ref_value = ref_value.strip().upper()
        cand_value = cand_value.strip().upper()
        label = FIELD_LABELS[attr]

        if ref_value == cand_value:
            result.coincidencias += 1
            return

        if attr == 'uuid' or result.modo is ReconciliationMode.STRICT:
            result.diferencias.append(
                FieldDifference(label, ref_value, cand_value, critico=True)
            )
            return

        # Lenient RFC: the right RFC may have been read but assigned to the wrong role
        if ref_value in candidate.rfcs_encontrados:
            result.coincidencias += 1
            result.advertencias.append(
                f"{label} asignado como {cand_value}, pero {ref_value} aparece en el documento"
            )
            return

        result.diferencias.append(
            FieldDifference(label, ref_value, cand_value, critico=False)
        )
        result.advertencias.append(f"{label} diferente: registro={ref_value}, documento={cand_value}")

    def _compare_total(
        self,
        reference: FiscalTuple,
        candidate: FiscalTuple,
        result: ReconciliationResult
    ) -> None:
        if reference.total is None or candidate.total is None:
            return

        result.total_comparaciones += 1
        difference = abs(reference.total - candidate.total)

        if result.modo is ReconciliationMode.STRICT:
            tolerance = self.strict_tolerance
        else:
            tolerance = abs(reference.total) * self.lenient_ratio

        if difference <= tolerance:
            result.coincidencias += 1
            return

        ref_text = f"{reference.total:.2f}"
        cand_text = f"{candidate.total:.2f}"
        result.diferencias.append(FieldDifference(
            'Total',
            ref_text,
            cand_text,
            critico=result.modo is ReconciliationMode.STRICT,
            diferencia=f"{difference:.2f}",
        ))

        if result.modo is ReconciliationMode.LENIENT:
            result.advertencias.append(f"Total diferente: registro=${ref_text}, documento=${cand_text}")

    def _build_message(self, result: ReconciliationResult) -> str:
        if result.total_comparaciones == 0:
            return "Sin datos comparables entre el documento y el registro"

        if result.modo is ReconciliationMode.STRICT:
            if result.coinciden:
                return "QR y registro coinciden"
            campos = ', '.join(d.campo for d in result.diferencias_criticas)
            return f"QR y registro NO coinciden. Diferencias en: {campos}"

        if not result.coinciden:
            return "UUID diferente entre documento y registro - Verificar manualmente"
        if result.advertencias:
            return f"Datos extraídos con diferencias menores: {', '.join(result.advertencias)}"
        return "Datos extraídos coinciden con el registro"
