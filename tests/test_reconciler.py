"""
Tests for evidence reconciliation.

Covers:
- Strict comparison (QR vs record)
- Lenient comparison (OCR vs record)
- Match percentage and messages
"""

from decimal import Decimal

import pytest

from cfdi_validation.fiscal_parser import FiscalTuple
from cfdi_validation.reconciliation import EvidenceReconciler, ReconciliationMode
from conftest import UUID, RFC_EMISOR, RFC_RECEPTOR


OTHER_UUID = "11111111-2222-3333-4444-555555555555"


@pytest.fixture
def reconciler():
    return EvidenceReconciler(strict_tolerance=Decimal("0.01"), lenient_ratio=Decimal("0.05"))


@pytest.fixture
def crear_tupla():
    """Factory for fiscal tuples; defaults match the shared record."""
    def _crear(uuid=UUID, rfc_emisor=RFC_EMISOR, rfc_receptor=RFC_RECEPTOR,
               total="500.00", rfcs=None):
        return FiscalTuple(
            uuid=uuid,
            rfc_emisor=rfc_emisor,
            rfc_receptor=rfc_receptor,
            total=Decimal(total) if total is not None else None,
            rfcs_encontrados=rfcs or [],
        )
    return _crear


# =============================================================================
# STRICT
# =============================================================================

class TestStrict:
    """QR vs record: any difference is critical."""

    def test_identical(self, reconciler, crear_tupla):
        result = reconciler.reconcile(crear_tupla(), crear_tupla())

        assert result.coinciden
        assert result.porcentaje_coincidencia == 100
        assert result.mensaje == "QR y registro coinciden"

    def test_total_within_one_cent(self, reconciler, crear_tupla):
        result = reconciler.reconcile(crear_tupla(total="500.00"), crear_tupla(total="500.01"))

        assert result.coinciden
        assert result.diferencias == []

    def test_total_two_cents_off(self, reconciler, crear_tupla):
        result = reconciler.reconcile(crear_tupla(total="500.00"), crear_tupla(total="500.02"))

        assert not result.coinciden
        assert len(result.diferencias_criticas) == 1
        diferencia = result.diferencias[0]
        assert diferencia.campo == 'Total'
        assert diferencia.diferencia == "0.02"
        assert result.mensaje == "QR y registro NO coinciden. Diferencias en: Total"
        assert result.porcentaje_coincidencia == 75

    def test_uuid_difference_is_critical(self, reconciler, crear_tupla):
        result = reconciler.reconcile(crear_tupla(), crear_tupla(uuid=OTHER_UUID))

        assert not result.coinciden
        assert [d.campo for d in result.diferencias_criticas] == ['UUID']
        assert result.mensaje == "QR y registro NO coinciden. Diferencias en: UUID"
        assert result.porcentaje_coincidencia == 75

    def test_rfc_difference_is_critical(self, reconciler, crear_tupla):
        candidate = crear_tupla(rfc_receptor="CCC030303CC3", rfcs=[RFC_RECEPTOR])
        result = reconciler.reconcile(crear_tupla(), candidate, ReconciliationMode.STRICT)

        assert not result.coinciden
        assert result.diferencias[0].campo == 'RFC Receptor'
        assert result.diferencias[0].critico

    def test_identifiers_compared_case_insensitively(self, reconciler, crear_tupla):
        candidate = crear_tupla(uuid=UUID.lower(), rfc_emisor=RFC_EMISOR.lower())
        result = reconciler.reconcile(crear_tupla(), candidate)

        assert result.coinciden

    def test_absent_fields_are_not_compared(self, reconciler, crear_tupla):
        candidate = crear_tupla(rfc_receptor=None, total=None)
        result = reconciler.reconcile(crear_tupla(), candidate)

        assert result.total_comparaciones == 2
        assert result.coinciden

    def test_nothing_comparable(self, reconciler):
        result = reconciler.reconcile(FiscalTuple(uuid=UUID), FiscalTuple(total=Decimal(1)))

        assert result.total_comparaciones == 0
        assert result.porcentaje_coincidencia == 0
        assert result.mensaje == "Sin datos comparables entre el documento y el registro"


# =============================================================================
# LENIENT
# =============================================================================

class TestLenient:
    """OCR vs record: only a UUID difference is critical."""

    def test_uuid_difference_is_critical(self, reconciler, crear_tupla):
        result = reconciler.reconcile(
            crear_tupla(), crear_tupla(uuid=OTHER_UUID), ReconciliationMode.LENIENT
        )

        assert not result.coinciden
        assert result.mensaje == "UUID diferente entre documento y registro - Verificar manualmente"

    def test_swapped_rfc_found_in_document(self, reconciler, crear_tupla):
        """The record RFC was read but assigned to the other role."""
        candidate = crear_tupla(
            rfc_emisor=RFC_RECEPTOR,
            rfc_receptor=RFC_EMISOR,
            rfcs=[RFC_RECEPTOR, RFC_EMISOR],
        )
        result = reconciler.reconcile(crear_tupla(), candidate, ReconciliationMode.LENIENT)

        assert result.coinciden
        assert result.porcentaje_coincidencia == 100
        assert result.diferencias == []
        assert len(result.advertencias) == 2
        assert result.mensaje.startswith("Datos extraídos con diferencias menores: ")

    def test_rfc_misread(self, reconciler, crear_tupla):
        candidate = crear_tupla(rfc_emisor="AAA010101AA4", rfcs=["AAA010101AA4"])
        result = reconciler.reconcile(crear_tupla(), candidate, ReconciliationMode.LENIENT)

        assert result.coinciden
        assert len(result.diferencias) == 1
        assert not result.diferencias[0].critico
        assert result.advertencias == [
            f"RFC Emisor diferente: registro={RFC_EMISOR}, documento=AAA010101AA4"
        ]

    @pytest.mark.parametrize("total", ["1000.00", "1040.00", "950.00", "1050.00"])
    def test_total_within_five_percent(self, reconciler, crear_tupla, total):
        result = reconciler.reconcile(
            crear_tupla(total="1000.00"), crear_tupla(total=total), ReconciliationMode.LENIENT
        )

        assert result.coinciden
        assert result.advertencias == []
        assert result.mensaje == "Datos extraídos coinciden con el registro"

    def test_total_outside_tolerance_is_advisory(self, reconciler, crear_tupla):
        result = reconciler.reconcile(
            crear_tupla(total="1000.00"), crear_tupla(total="1100.00"), ReconciliationMode.LENIENT
        )

        assert result.coinciden
        assert result.diferencias[0].diferencia == "100.00"
        assert result.advertencias == ["Total diferente: registro=$1000.00, documento=$1100.00"]

    def test_to_dict(self, reconciler, crear_tupla):
        result = reconciler.reconcile(
            crear_tupla(), crear_tupla(uuid=OTHER_UUID), ReconciliationMode.LENIENT
        )
        data = result.to_dict()

        assert data['modo'] == 'flexible'
        assert data['totalComparaciones'] == 4
        assert data['porcentajeCoincidencia'] == 75
        assert data['diferencias'][0] == {
            'campo': 'UUID',
            'valorA': UUID,
            'valorB': OTHER_UUID,
            'critico': True,
        }
