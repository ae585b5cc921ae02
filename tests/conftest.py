"""
Fixtures for the CFDI validation tests.

Provides:
- Sample document text, QR payloads and CFDI XML
- Fakes for OCR, PDF text, QR decoding and the SAT HTTP session
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ConfigurationManager


UUID = "6F1D2C3B-4A5E-4F60-8A7B-9C0D1E2F3A4B"
RFC_EMISOR = "AAA010101AAA"
RFC_RECEPTOR = "BBB020202BB2"
RFC_GENERICO = "XAXX010101000"
RFC_PAC = "SNF171020F3A"


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.fixture(autouse=True)
def reset_configuration():
    """Every test starts from the bundled settings.yaml."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


# =============================================================================
# DOCUMENT TEXT
# =============================================================================

@pytest.fixture
def cfdi_text():
    """Text of a typical CFDI PDF representation."""
    return (
        "FACTURA\n"
        "EMISOR: EMPRESA DEMO SA DE CV\n"
        f"RFC: {RFC_EMISOR}\n"
        "RECEPTOR: PUBLICO EN GENERAL\n"
        f"RFC: {RFC_GENERICO}\n"
        f"Folio Fiscal: {UUID.lower()}\n"
        "Subtotal: $1,064.28\n"
        "IVA 16%: $170.28\n"
        "Total: $1,234.56\n"
        f"RFC del proveedor de certificación: {RFC_PAC}\n"
    )


@pytest.fixture
def sat_url():
    """SAT verification URL as encoded in the CFDI QR code."""
    return (
        "https://verificacfdi.facturaelectronica.sat.gob.mx/default.aspx"
        f"?id={UUID}&re={RFC_EMISOR}&rr={RFC_RECEPTOR}"
        "&tt=0000001234.560000&fe=AbCd1234"
    )


@pytest.fixture
def cfdi_xml():
    """Stamped CFDI 4.0 matching sat_url."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<cfdi:Comprobante xmlns:cfdi="http://www.sat.gob.mx/cfd/4" '
        'xmlns:tfd="http://www.sat.gob.mx/TimbreFiscalDigital" '
        'Version="4.0" SubTotal="1064.28" Total="1234.56" Moneda="MXN">\n'
        f'  <cfdi:Emisor Rfc="{RFC_EMISOR}" Nombre="EMPRESA DEMO" RegimenFiscal="601"/>\n'
        f'  <cfdi:Receptor Rfc="{RFC_RECEPTOR}" Nombre="CLIENTE DEMO" UsoCFDI="G03"/>\n'
        '  <cfdi:Complemento>\n'
        f'    <tfd:TimbreFiscalDigital Version="1.1" UUID="{UUID.lower()}" '
        f'RfcProvCertif="{RFC_PAC}"/>\n'
        '  </cfdi:Complemento>\n'
        '</cfdi:Comprobante>\n'
    ).encode("utf-8")


@pytest.fixture
def record():
    """Structured record matching sat_url."""
    return {
        'uuid': UUID,
        'rfcEmisor': RFC_EMISOR,
        'rfcReceptor': RFC_RECEPTOR,
        'total': '1234.56',
    }


# =============================================================================
# SAT RESPONSES
# =============================================================================

def soap_response(estado, codigo="S - Comprobante obtenido satisfactoriamente.",
                  estatus_cancelacion="", es_cancelable="Cancelable sin aceptación"):
    """Build a ConsultaCFDIService response body."""
    return (
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">'
        '<s:Body><ConsultaResponse xmlns="http://tempuri.org/">'
        '<ConsultaResult xmlns:a="http://schemas.datacontract.org/2004/07/'
        'Sat.Cfdi.Negocio.ConsultaCfdi.Servicio" '
        'xmlns:i="http://www.w3.org/2001/XMLSchema-instance">'
        f'<a:CodigoEstatus>{codigo}</a:CodigoEstatus>'
        f'<a:EsCancelable>{es_cancelable}</a:EsCancelable>'
        f'<a:Estado>{estado}</a:Estado>'
        f'<a:EstatusCancelacion>{estatus_cancelacion}</a:EstatusCancelacion>'
        '<a:ValidacionEFOS>200</a:ValidacionEFOS>'
        '</ConsultaResult></ConsultaResponse></s:Body></s:Envelope>'
    ).encode("utf-8")


class FakeResponse:
    """Streamed response; each chunk read advances the optional clock by tick seconds."""

    def __init__(self, status_code=200, content=b"", clock=None, tick=0.0, chunk_size=64):
        self.status_code = status_code
        self.content = content
        self.clock = clock
        self.tick = tick
        self.chunk_size = chunk_size
        self.closed = False

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), self.chunk_size):
            if self.clock is not None:
                self.clock.now += self.tick
            yield self.content[start:start + self.chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Records posts; returns a fixed response or raises a fixed error."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(content=soap_response("Vigente"))
        self.error = error
        self.calls = []

    def post(self, url, data=None, headers=None, timeout=None, stream=False):
        self.calls.append({
            'url': url, 'data': data, 'headers': headers,
            'timeout': timeout, 'stream': stream,
        })
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def make_session():
    """Factory: make_session(estado=..., status_code=..., content=..., error=...)."""
    def _crear(estado="Vigente", status_code=200, content=None, error=None, **kwargs):
        body = content if content is not None else soap_response(estado, **kwargs)
        return FakeSession(FakeResponse(status_code, body), error)
    return _crear


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# EXTRACTION COLLABORATORS
# =============================================================================

class FakeOCR:
    """Stand-in for OCREngine.recognize."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = 0

    def recognize(self, document_bytes):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


class FakePdfProcessor:
    """Stand-in for PDFProcessor text extraction."""

    def __init__(self, text="", pages=1):
        self.text = text
        self.pages = pages

    def extract_text(self, pdf_bytes):
        return self.text

    def get_page_count(self, pdf_bytes):
        return self.pages


class FakeQRDecoder:
    def __init__(self, payloads=None):
        self.payloads = payloads or []

    def decode(self, document_bytes):
        return list(self.payloads)


PDF_BYTES = b"%PDF-1.4\n% test document\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
