"""
Tests for the fiscal data parser.

Covers:
- UUID, RFC and total extraction from document text
- Certifier and generic RFC handling
- SAT QR payload parsing
"""

from decimal import Decimal

import pytest

from cfdi_validation.fiscal_parser import FiscalDataParser, RfcCatalog, parse_qr_url
from conftest import UUID, RFC_EMISOR, RFC_RECEPTOR, RFC_GENERICO, RFC_PAC


@pytest.fixture
def parser():
    return FiscalDataParser(catalog=RfcCatalog())


# =============================================================================
# DOCUMENT TEXT
# =============================================================================

class TestParseText:
    """Tests for FiscalDataParser.parse."""

    def test_typical_invoice(self, parser, cfdi_text):
        """All four fields are found; the certifier RFC is ignored."""
        result = parser.parse(cfdi_text)

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_GENERICO
        assert result.total == Decimal("1234.56")
        assert result.fuente == 'texto'
        assert result.is_complete

    def test_certifier_never_assigned(self, parser):
        """A PAC RFC printed before the parties is skipped."""
        text = f"PAC {RFC_PAC} EMISOR {RFC_EMISOR} RECEPTOR {RFC_RECEPTOR}"
        result = parser.parse(text)

        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_RECEPTOR
        assert RFC_PAC not in result.rfcs_encontrados

    def test_generic_rfc_is_receiver_in_any_order(self, parser):
        """Generic RFC printed first still ends up as receiver."""
        text = f"RECEPTOR RFC {RFC_GENERICO} EMISOR RFC {RFC_EMISOR}"
        result = parser.parse(text)

        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_GENERICO

    def test_generic_issuer_from_parameters_is_swapped(self, parser):
        """A generic RFC found as RE= is moved to the receiver."""
        text = f"RE={RFC_GENERICO} RR={RFC_EMISOR} TT=500.00"
        result = parser.parse(text)

        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_GENERICO
        assert result.total == Decimal("500.00")

    def test_total_comprobante_has_priority(self, parser):
        """The explicit 'total comprobante' label beats a larger plain TOTAL."""
        text = "TOTAL: $9,999.00\nTOTAL COMPROBANTE: 1,234.56"
        result = parser.parse(text)

        assert result.total == Decimal("1234.56")

    def test_subtotal_and_iva_are_not_totals(self, parser):
        text = "SUBTOTAL: 1000.00 TOTAL IVA: 160.00 TOTAL: 1160.00"
        result = parser.parse(text)

        assert result.total == Decimal("1160.00")

    def test_largest_admissible_total_in_family(self, parser):
        text = "TOTAL 100.00 ... TOTAL 250.50"
        result = parser.parse(text)

        assert result.total == Decimal("250.50")

    def test_amount_over_ceiling_is_ignored(self, parser):
        """Implausible amounts fall through to the next family."""
        text = "TOTAL: 99999999999.00 IMPORTE $1,500.00"
        result = parser.parse(text)

        assert result.total == Decimal("1500.00")

    def test_currency_amount_fallback(self, parser):
        result = parser.parse("IMPORTE A PAGAR $ 845.10 MXN")

        assert result.total == Decimal("845.10")

    def test_cadena_original_uuid(self, parser):
        """The timbre cadena original beats an unlabeled UUID."""
        other = "11111111-2222-3333-4444-555555555555"
        text = f"REFERENCIA {other}\n||1.1|{UUID}|2024-01-15T10:00:00|{RFC_PAC}|abc=||"
        result = parser.parse(text)

        assert result.uuid == UUID

    def test_qr_url_in_text_wins(self, parser, sat_url):
        """The printed verification URL fills every field."""
        text = f"TOTAL: $1.00\n{sat_url}\nRFC {RFC_GENERICO}"
        result = parser.parse(text)

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_RECEPTOR
        assert result.total == Decimal("1234.56")

    def test_missing_fields_reported(self, parser):
        result = parser.parse(f"EMISOR {RFC_EMISOR}")

        assert result.rfc_emisor == RFC_EMISOR
        assert result.missing_fields() == ['uuid', 'rfcReceptor', 'total']

    @pytest.mark.parametrize("text", ["", "   \n  ", None])
    def test_empty_text(self, parser, text):
        result = parser.parse(text)

        assert result.is_empty
        assert result.fuente == 'texto'


# =============================================================================
# QR PAYLOAD
# =============================================================================

class TestParseQrUrl:
    """Tests for FiscalDataParser.parse_qr_url."""

    def test_full_url(self, parser, sat_url):
        result = parser.parse_qr_url(sat_url)

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_RECEPTOR
        assert result.total == Decimal("1234.56")
        assert result.sello_ultimos8 == "AbCd1234"
        assert result.fuente == 'qr'

    def test_bare_query_string(self, parser):
        qr = f"id={UUID}&re={RFC_EMISOR}&rr={RFC_RECEPTOR}&tt=500"
        result = parser.parse_qr_url(qr)

        assert result.is_complete
        assert result.total == Decimal("500.00")

    def test_keys_are_case_insensitive(self, parser):
        qr = f"?ID={UUID.lower()}&RE={RFC_EMISOR.lower()}&RR={RFC_RECEPTOR}&TT=1.5"
        result = parser.parse_qr_url(qr)

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.total == Decimal("1.50")

    def test_malformed_uuid_is_dropped(self, parser):
        qr = f"?id=no-es-un-uuid&re={RFC_EMISOR}&rr={RFC_RECEPTOR}&tt=10"
        result = parser.parse_qr_url(qr)

        assert result.uuid is None
        assert result.missing_fields() == ['uuid']

    def test_unrelated_payload(self, parser):
        result = parser.parse_qr_url("https://example.com/promo")

        assert result.is_empty

    def test_rfc_with_ampersand(self, parser):
        qr = f"https://verificacfdi.facturaelectronica.sat.gob.mx/default.aspx?id={UUID}&re=P&G851223B24&rr=XAXX010101000&tt=500.00&fe=AbCd1234"
        result = parser.parse_qr_url(qr)

        assert result.rfc_emisor == "P&G851223B24"
        assert result.rfc_receptor == "XAXX010101000"
        assert result.is_complete
        assert result.sello_ultimos8 == "AbCd1234"

    def test_html_escaped_ampersands(self, parser):
        qr = f"?id={UUID}&amp;re=p&amp;g851223b24&amp;rr={RFC_RECEPTOR}&amp;tt=10.5"
        result = parser.parse_qr_url(qr)

        assert result.rfc_emisor == "P&G851223B24"
        assert result.rfc_receptor == RFC_RECEPTOR
        assert result.total == Decimal("10.50")

    def test_module_level_helper(self, sat_url):
        assert parse_qr_url(sat_url).uuid == UUID
