"""
QR Decoder Module.

Reads the QR code printed on CFDI representations. Its payload is the SAT
verification URL (?id=...&re=...&rr=...&tt=...&fe=...).

Requirements:
    - pyzbar Python package and the zbar shared library

Author: ML Engineering Team
"""

from typing import Iterable, List, Optional

from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import detect_document_type
from cfdi_validation.utils.exceptions import CfdiValidationError
from cfdi_validation.input_handler.pdf_processor import PDFProcessor
from cfdi_validation.input_handler.image_processor import ImageProcessor

# Initialize module logger
logger = get_logger(__name__)


SAT_QR_MARKERS = ('verificacfdi', 'facturaelectronica.sat.gob.mx')


def find_sat_payload(payloads: Iterable[str]) -> Optional[str]:
    """
    Pick the SAT verification payload among decoded QR symbols.

    A payload qualifies if it points at the SAT verification site or
    carries both id= and re= parameters.
    """
    candidates = list(payloads)

    for payload in candidates:
        lowered = payload.lower()
        if any(marker in lowered for marker in SAT_QR_MARKERS):
            return payload

    for payload in candidates:
        lowered = payload.lower()
        if 'id=' in lowered and 're=' in lowered:
            return payload

    return None


class QRDecoder:
    """
    QR symbol decoder for PDFs and images.

    Example:
        >>> decoder = QRDecoder()
        >>> payloads = decoder.decode(image_bytes)
        >>> find_sat_payload(payloads)
        'https://verificacfdi.facturaelectronica.sat.gob.mx/default.aspx?id=...'
    """

    def __init__(
        self,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.image_processor = image_processor or ImageProcessor()
        self._check_dependencies()

    def _check_dependencies(self) -> None:
        try:
            from pyzbar import pyzbar
            self._pyzbar = pyzbar
        except ImportError:
            logger.warning("pyzbar not available. Install with: pip install pyzbar")
            self._pyzbar = None
        except OSError as e:
            # pyzbar is installed but the zbar shared library is missing
            logger.warning(f"zbar library not available: {e}")
            self._pyzbar = None

    @property
    def available(self) -> bool:
        return self._pyzbar is not None

    def decode(self, document_bytes: bytes) -> List[str]:
        """
        Decode every QR symbol in a document.

        Args:
            document_bytes: Raw PDF or image content.

        Returns:
            Decoded payloads in page order; empty if none are found or
            the decoder is unavailable.
        """
        if not document_bytes or self._pyzbar is None:
            return []

        try:
            if detect_document_type(document_bytes) == 'pdf':
                images = self.pdf_processor.render_pages(document_bytes)
            else:
                images = [self.image_processor.load(document_bytes)]
        except CfdiValidationError as e:
            logger.warning(f"Could not load document for QR decoding: {e.message}")
            return []

        payloads: List[str] = []
        for image in images:
            for symbol in self._pyzbar.decode(image):
                if symbol.type != 'QRCODE':
                    continue
                payload = symbol.data.decode('utf-8', errors='replace').strip()
                if payload and payload not in payloads:
                    payloads.append(payload)

        logger.debug(f"Decoded {len(payloads)} QR payload(s)")
        return payloads
