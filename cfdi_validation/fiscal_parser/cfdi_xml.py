"""
CFDI XML Reader.

Reads the fiscal tuple from a stamped CFDI 3.3/4.0 XML so it can serve as
the structured record for reconciliation. Namespace prefixes are ignored;
no schema validation is done.
"""

import xml.etree.ElementTree as ET
from typing import Dict, Optional

from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import CorruptedFileError
from .fiscal_tuple import FiscalTuple

# Initialize module logger
logger = get_logger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    """Case-insensitive attribute lookup (CFDI 3.2 used lowercase names)."""
    for key, value in element.attrib.items():
        if _local_name(key).lower() == name.lower():
            return value
    return None


def read_cfdi_xml(xml_bytes: bytes) -> FiscalTuple:
    """
    Extract UUID, RFCs and total from a CFDI XML document.

    Args:
        xml_bytes: Raw XML content.

    Returns:
        FiscalTuple with fuente='xml'.

    Raises:
        CorruptedFileError: If the content is not a CFDI XML.
        ValidationError: If a present field is malformed.
    """
    if not xml_bytes:
        raise CorruptedFileError('cfdi_xml', 'Documento XML vacío')

    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as e:
        raise CorruptedFileError('cfdi_xml', f'XML mal formado: {e}')

    if _local_name(root.tag) != 'Comprobante':
        raise CorruptedFileError('cfdi_xml', 'El XML no es un Comprobante CFDI')

    record: Dict[str, Optional[str]] = {'total': _attribute(root, 'Total')}

    for element in root.iter():
        name = _local_name(element.tag)
        if name == 'Emisor' and 'rfcEmisor' not in record:
            record['rfcEmisor'] = _attribute(element, 'Rfc')
        elif name == 'Receptor' and 'rfcReceptor' not in record:
            record['rfcReceptor'] = _attribute(element, 'Rfc')
        elif name == 'TimbreFiscalDigital' and 'uuid' not in record:
            record['uuid'] = _attribute(element, 'UUID')

    record['rfcsEncontrados'] = [
        rfc for rfc in (record.get('rfcEmisor'), record.get('rfcReceptor')) if rfc
    ]

    result = FiscalTuple.from_dict(record, fuente='xml')
    if not result.is_complete:
        logger.warning(f"CFDI XML is missing fields: {result.missing_fields()}")
    return result
