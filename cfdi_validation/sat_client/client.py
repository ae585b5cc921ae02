"""
SAT Validation Client Module.

Queries the SAT ConsultaCFDIService for the status of a CFDI.

Failure policy:
    - Invalid inputs raise ValidationError before any network activity
    - Timeout or connection failure: "Sin Verificar", storing allowed
    - HTTP error or unreadable response: "Error", storing blocked
    - Only parsed responses are cached

Author: ML Engineering Team
"""

import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional

import requests

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import mask_uuid
from cfdi_validation.utils.exceptions import (
    AuthorityConnectionError,
    AuthorityError,
    AuthorityResponseError,
    AuthorityTimeoutError,
)
from cfdi_validation.postprocessor import AmountNormalizer, FieldValidator, IdentifierNormalizer
from cfdi_validation.fiscal_parser import FiscalTuple
from .cache import AuthorityCache
from .soap import build_envelope, parse_response
from .status import AuthorityStatus

# Initialize module logger
logger = get_logger(__name__)


DEFAULT_ENDPOINT = 'https://consultaqr.facturaelectronica.sat.gob.mx/ConsultaCFDIService.svc'
DEFAULT_SOAP_ACTION = 'http://tempuri.org/IConsultaCFDIService/Consulta'


class SatValidationClient:
    """
    Client for the SAT CFDI status web service.

    Args:
        session: requests.Session-like object (anything with post()).
        cache: Status cache; a private one is created if not provided.
        endpoint: Service URL.
        soap_action: SOAPAction header value.
        timeout: Overall request deadline in seconds, connect and body included.
        clock: Monotonic time source for the deadline.

    Example:
        >>> client = SatValidationClient()
        >>> status = client.validate("AAA010101AAA", "XAXX010101000", "1234.56", uuid)
        >>> status.estado
        <EstadoSAT.VIGENTE: 'Vigente'>
    """

    def __init__(
        self,
        session: Optional[Any] = None,
        cache: Optional[AuthorityCache] = None,
        endpoint: Optional[str] = None,
        soap_action: Optional[str] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else AuthorityCache()
        self.endpoint = endpoint or get_config('sat.endpoint', DEFAULT_ENDPOINT)
        self.soap_action = soap_action or get_config('sat.soap_action', DEFAULT_SOAP_ACTION)
        self.timeout = float(timeout if timeout is not None else get_config('sat.timeout_seconds', 10))
        self._clock = clock

        self.validator = FieldValidator()
        self.identifiers = IdentifierNormalizer()
        self.amounts = AmountNormalizer()

    def validate(self, rfc_emisor: str, rfc_receptor: str, total: Any, uuid: str) -> AuthorityStatus:
        """
        Get the SAT status of a CFDI.

        Args:
            rfc_emisor: Issuer RFC.
            rfc_receptor: Receiver RFC.
            total: Invoice total (Decimal, number or string).
            uuid: Folio fiscal.

        Returns:
            AuthorityStatus. Network and protocol failures are reported in
            the status, never raised.

        Raises:
            ValidationError: If an input is missing or malformed.
        """
        self.validator.require_fiscal_fields(
            rfcEmisor=rfc_emisor,
            rfcReceptor=rfc_receptor,
            total=total,
            uuid=uuid,
        )

        rfc_emisor = self.identifiers.normalize_rfc(rfc_emisor)
        rfc_receptor = self.identifiers.normalize_rfc(rfc_receptor)
        uuid = self.identifiers.normalize_uuid(uuid)
        total_text = self.amounts.format_two_decimals(total)

        cache_key = AuthorityCache.make_key(rfc_emisor, rfc_receptor, total_text, uuid)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"SAT status from cache: {mask_uuid(uuid)}")
            return cached

        logger.info(
            f"Querying SAT: re={rfc_emisor}, rr={rfc_receptor}, "
            f"tt={total_text}, id={mask_uuid(uuid)}"
        )

        try:
            consulta = parse_response(self._post(build_envelope(rfc_emisor, rfc_receptor, total_text, uuid)))
        except AuthorityTimeoutError as e:
            logger.warning(f"SAT query timed out: {e.message}")
            return AuthorityStatus.unverified(
                uuid,
                "Timeout al consultar SAT",
                "No se pudo verificar con SAT (timeout) - Proceda con precaución",
            )
        except AuthorityConnectionError as e:
            logger.warning(f"SAT unreachable: {e.message}")
            return AuthorityStatus.unverified(
                uuid,
                "Error de conexión con SAT",
                "No se pudo conectar con SAT - Proceda con precaución",
            )
        except AuthorityError as e:
            logger.error(f"SAT query failed: {e.message}")
            return AuthorityStatus.failed(uuid, e.message)

        status = AuthorityStatus.from_consulta(
            uuid,
            estado=consulta.estado,
            codigo_estatus=consulta.codigo_estatus,
            es_cancelable=consulta.es_cancelable,
            estatus_cancelacion=consulta.estatus_cancelacion,
            validacion_efos=consulta.validacion_efos,
        )
        self.cache.set(cache_key, status)

        logger.info(f"SAT status for {mask_uuid(uuid)}: {status.estado.value}")
        return status

    def validate_tuple(self, fiscal: FiscalTuple) -> AuthorityStatus:
        """Validate a complete FiscalTuple."""
        return self.validate(fiscal.rfc_emisor, fiscal.rfc_receptor, fiscal.total, fiscal.uuid)

    def _post(self, envelope: str) -> bytes:
        """
        Send the SOAP request.

        Raises:
            AuthorityTimeoutError: No complete answer within the timeout.
            AuthorityConnectionError: The service could not be reached.
            AuthorityResponseError: Non-200 status or other request failure.
        """
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": self.soap_action,
        }

        deadline = self._clock() + self.timeout

        try:
            response = self.session.post(
                self.endpoint,
                data=envelope.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
                stream=True,
            )
            if response.status_code != 200:
                response.close()
                raise AuthorityResponseError(f"HTTP {response.status_code}", response.status_code)
            return self._read_body(response, deadline)
        except requests.exceptions.Timeout:
            raise AuthorityTimeoutError(self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise AuthorityConnectionError(self.endpoint, str(e))
        except requests.exceptions.RequestException as e:
            raise AuthorityResponseError(str(e))

    def _read_body(self, response: Any, deadline: float) -> bytes:
        # requests applies timeout per socket operation; a slow body is cut here
        chunks = []
        for chunk in response.iter_content(chunk_size=8192):
            chunks.append(chunk)
            if self._clock() > deadline:
                response.close()
                logger.warning(f"SAT response exceeded {self.timeout}s, aborting")
                raise AuthorityTimeoutError(self.timeout)
        return b"".join(chunks)


# =============================================================================
# Shared default client
# =============================================================================

_default_cache: Optional[AuthorityCache] = None
_default_client: Optional[SatValidationClient] = None


def get_default_cache() -> AuthorityCache:
    global _default_cache
    if _default_cache is None:
        _default_cache = AuthorityCache()
    return _default_cache


def get_default_client() -> SatValidationClient:
    global _default_client
    if _default_client is None:
        _default_client = SatValidationClient(cache=get_default_cache())
    return _default_client


def validate_cfdi(rfc_emisor: str, rfc_receptor: str, total: Any, uuid: str) -> AuthorityStatus:
    """Validate a CFDI with the shared client and cache."""
    return get_default_client().validate(rfc_emisor, rfc_receptor, total, uuid)


def clear_cache() -> None:
    """Drop every cached SAT status."""
    get_default_cache().clear()
