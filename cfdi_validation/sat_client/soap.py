"""
SAT Consulta SOAP Codec.

Builds the SOAP 1.1 request for the SAT ConsultaCFDIService and reads the
ConsultaResult fields from its response.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Union

from cfdi_validation.utils.exceptions import AuthorityResponseError


ENVELOPE_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:tem="http://tempuri.org/">
   <soapenv:Header/>
   <soapenv:Body>
      <tem:Consulta>
         <tem:expresionImpresa><![CDATA[{expresion}]]></tem:expresionImpresa>
      </tem:Consulta>
   </soapenv:Body>
</soapenv:Envelope>"""

RESULT_FIELDS = ('CodigoEstatus', 'Estado', 'EsCancelable', 'EstatusCancelacion', 'ValidacionEFOS')


@dataclass
class ConsultaResult:
    """Raw fields of a SAT Consulta response."""
    codigo_estatus: Optional[str] = None
    estado: Optional[str] = None
    es_cancelable: Optional[str] = None
    estatus_cancelacion: Optional[str] = None
    validacion_efos: Optional[str] = None


def build_expresion_impresa(rfc_emisor: str, rfc_receptor: str, total: str, uuid: str) -> str:
    """
    Example:
        >>> build_expresion_impresa("AAA010101AAA", "XAXX010101000", "500.00", "ABC...")
        '?re=AAA010101AAA&rr=XAXX010101000&tt=500.00&id=ABC...'
    """
    return f"?re={rfc_emisor}&rr={rfc_receptor}&tt={total}&id={uuid}"


def build_envelope(rfc_emisor: str, rfc_receptor: str, total: str, uuid: str) -> str:
    """Build the Consulta request; all arguments must already be normalized."""
    expresion = build_expresion_impresa(rfc_emisor, rfc_receptor, total, uuid)
    return ENVELOPE_TEMPLATE.format(expresion=expresion)


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def parse_response(xml_text: Union[str, bytes]) -> ConsultaResult:
    """
    Read ConsultaResult from a SOAP response.

    Fields may be child elements or attributes of ConsultaResult, under
    any namespace prefix.

    Raises:
        AuthorityResponseError: If the body is not XML or has no ConsultaResult.
    """
    if not xml_text or not xml_text.strip():
        raise AuthorityResponseError("Respuesta SAT vacía")

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise AuthorityResponseError(f"Respuesta SAT inválida: {e}")

    consulta = None
    for el in root.iter():
        if _local_name(el.tag) == 'ConsultaResult':
            consulta = el
            break

    if consulta is None:
        raise AuthorityResponseError("Respuesta SAT inválida: no se encontró ConsultaResult")

    values = {}
    for key, value in consulta.attrib.items():
        name = _local_name(key)
        if name in RESULT_FIELDS and value.strip():
            values[name] = value.strip()

    for child in consulta:
        name = _local_name(child.tag)
        if name in RESULT_FIELDS and child.text and child.text.strip():
            values.setdefault(name, child.text.strip())

    return ConsultaResult(
        codigo_estatus=values.get('CodigoEstatus'),
        estado=values.get('Estado'),
        es_cancelable=values.get('EsCancelable'),
        estatus_cancelacion=values.get('EstatusCancelacion'),
        validacion_efos=values.get('ValidacionEFOS'),
    )
