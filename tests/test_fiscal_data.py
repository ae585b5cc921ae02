"""
Tests for fiscal data models, normalizers and the CFDI XML reader.
"""

from decimal import Decimal

import pytest

from cfdi_validation.fiscal_parser import FiscalTuple, RfcCatalog, read_cfdi_xml
from cfdi_validation.postprocessor import (
    AmountNormalizer,
    AmountValidator,
    FieldValidator,
    RfcValidator,
    UuidValidator,
)
from cfdi_validation.utils.exceptions import CorruptedFileError, ValidationError
from conftest import UUID, RFC_EMISOR, RFC_RECEPTOR, RFC_GENERICO


# =============================================================================
# NORMALIZERS AND VALIDATORS
# =============================================================================

class TestAmountNormalizer:

    @pytest.mark.parametrize("value, expected", [
        ("$1,234.56", Decimal("1234.56")),
        ("1234.56 MXN", Decimal("1234.56")),
        ("0000001234.560000", Decimal("1234.560000")),
        (500, Decimal("500")),
        (0.1, Decimal("0.1")),
        (Decimal("7.5"), Decimal("7.5")),
    ])
    def test_to_decimal(self, value, expected):
        assert AmountNormalizer().to_decimal(value) == expected

    @pytest.mark.parametrize("value", [None, True, "", "abc", "1.2.3", float("nan")])
    def test_invalid(self, value):
        assert AmountNormalizer().to_decimal(value) is None

    @pytest.mark.parametrize("value, expected", [
        ("500", "500.00"),
        ("1234.565", "1234.57"),
        ("0.005", "0.01"),
        (0, "0.00"),
    ])
    def test_format_two_decimals(self, value, expected):
        assert AmountNormalizer().format_two_decimals(value) == expected


class TestValidators:

    @pytest.mark.parametrize("rfc", [RFC_EMISOR, RFC_GENERICO, "GODE561231GR8", "ÑAÑ010101AB1", "aaa010101aaa"])
    def test_valid_rfc(self, rfc):
        assert RfcValidator().is_valid(rfc)

    @pytest.mark.parametrize("rfc", ["", "ABC", "AAA01010AAA", "AAAAA010101AAA", "123010101AAA"])
    def test_invalid_rfc(self, rfc):
        assert not RfcValidator().is_valid(rfc)

    def test_uuid(self):
        assert UuidValidator().is_valid(UUID.lower())
        assert not UuidValidator().is_valid(UUID.replace("-", ""))

    def test_admissible_total(self):
        validator = AmountValidator()

        assert validator.is_admissible_total(Decimal("0.01"))
        assert not validator.is_admissible_total(Decimal("0"))
        assert not validator.is_admissible_total(Decimal("10000000"))

    def test_check_required_fields(self):
        ok, missing = FieldValidator().check_required_fields({'uuid': UUID, 'total': ' '})

        assert not ok
        assert missing == ['rfcEmisor', 'rfcReceptor', 'total']


class TestRfcCatalog:

    def test_from_config(self):
        catalog = RfcCatalog.from_config()

        assert catalog.is_certifier("SAT970701NN3")
        assert catalog.is_generic("XEXX010101000")
        assert not catalog.is_generic(None)
        assert not catalog.is_certifier(RFC_EMISOR)


# =============================================================================
# FISCAL TUPLE
# =============================================================================

class TestFiscalTuple:

    def test_from_dict_normalizes(self):
        result = FiscalTuple.from_dict({
            'uuid': UUID.lower(),
            'rfcEmisor': f" {RFC_EMISOR.lower()} ",
            'rfc_receptor': RFC_RECEPTOR,
            'total': "$1,234.56",
        })

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_RECEPTOR
        assert result.total == Decimal("1234.56")
        assert result.fuente == 'manual'
        assert result.is_complete

    def test_from_dict_partial(self):
        result = FiscalTuple.from_dict({'uuid': UUID, 'total': ''})

        assert result.missing_fields() == ['rfcEmisor', 'rfcReceptor', 'total']

    @pytest.mark.parametrize("data", [
        {'rfcEmisor': 'ABC'},
        {'uuid': '1234'},
        {'total': '-5'},
    ])
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(ValidationError):
            FiscalTuple.from_dict(data)

    def test_from_dict_rejects_non_dict(self):
        with pytest.raises(ValidationError):
            FiscalTuple.from_dict(["no", "es", "dict"])

    def test_fill_missing_never_overwrites(self):
        reference = FiscalTuple(uuid=UUID, total=Decimal("10.00"), rfcs_encontrados=[RFC_EMISOR])
        evidence = FiscalTuple(
            uuid="11111111-2222-3333-4444-555555555555",
            rfc_emisor=RFC_EMISOR,
            rfc_receptor=RFC_RECEPTOR,
            total=Decimal("99.00"),
            rfcs_encontrados=[RFC_RECEPTOR, RFC_EMISOR],
        )

        merged = reference.fill_missing(evidence)

        assert merged.uuid == UUID
        assert merged.total == Decimal("10.00")
        assert merged.rfc_receptor == RFC_RECEPTOR
        assert merged.rfcs_encontrados == [RFC_EMISOR, RFC_RECEPTOR]
        assert reference.rfc_receptor is None

    def test_to_dict(self):
        data = FiscalTuple(uuid=UUID, total=Decimal("1234.56"), fuente='qr').to_dict()

        assert data['uuid'] == UUID
        assert data['total'] == 1234.56
        assert data['rfcEmisor'] is None
        assert data['fuente'] == 'qr'


# =============================================================================
# CFDI XML
# =============================================================================

class TestReadCfdiXml:

    def test_cfdi_40(self, cfdi_xml):
        result = read_cfdi_xml(cfdi_xml)

        assert result.uuid == UUID
        assert result.rfc_emisor == RFC_EMISOR
        assert result.rfc_receptor == RFC_RECEPTOR
        assert result.total == Decimal("1234.56")
        assert result.fuente == 'xml'
        assert result.rfcs_encontrados == [RFC_EMISOR, RFC_RECEPTOR]

    def test_lowercase_attributes(self):
        xml = (
            '<cfdi:Comprobante xmlns:cfdi="http://www.sat.gob.mx/cfd/3" total="10.00">'
            f'<cfdi:Emisor rfc="{RFC_EMISOR}"/><cfdi:Receptor rfc="{RFC_GENERICO}"/>'
            '</cfdi:Comprobante>'
        ).encode("utf-8")
        result = read_cfdi_xml(xml)

        assert result.rfc_receptor == RFC_GENERICO
        assert result.missing_fields() == ['uuid']

    @pytest.mark.parametrize("xml", [
        b"",
        b"<cfdi:Comprobante",
        b"<Factura Total='1.00'/>",
    ])
    def test_not_a_cfdi(self, xml):
        with pytest.raises(CorruptedFileError):
            read_cfdi_xml(xml)

    def test_malformed_field(self):
        xml = b'<Comprobante Total="1.00"><Emisor Rfc="XYZ"/></Comprobante>'

        with pytest.raises(ValidationError):
            read_cfdi_xml(xml)
