"""
Validation Orchestrator Module.

Runs the three validation flows over the component modules:

    validate_image:            OCR -> parse -> (lenient reconcile) -> SAT
    compare_qr_with_record:    parse QR -> strict reconcile (no SAT)
    validate_pdf:              text/OCR -> parse -> SAT

Stages run strictly in order, once; nothing is retried.

Usage:
    from cfdi_validation.orchestrator import ValidationOrchestrator

    orchestrator = ValidationOrchestrator()
    decision = orchestrator.validate_pdf(pdf_bytes)
    if decision.permitir_guardar:
        ...

Author: ML Engineering Team
"""

from typing import Any, Optional, Union

from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import ValidationError
from cfdi_validation.fiscal_parser import FiscalDataParser, FiscalTuple, read_cfdi_xml
from cfdi_validation.reconciliation import EvidenceReconciler, ReconciliationMode
from cfdi_validation.sat_client import SatValidationClient, get_default_client
from cfdi_validation.input_handler import TextExtractor
from cfdi_validation.ocr_engine import QRDecoder, find_sat_payload
from .decision import ValidationDecision, ValidationStage

# Initialize module logger
logger = get_logger(__name__)


FLOW_PDF = 'pdf'
FLOW_IMAGE = 'imagen'
FLOW_QR = 'qr'

RecordInput = Union[FiscalTuple, dict, bytes]


class ValidationRun:
    """Stage tracker for one flow execution."""

    def __init__(self, flujo: str):
        self.flujo = flujo
        self.stage: Optional[ValidationStage] = None

    def advance(self, stage: ValidationStage) -> None:
        previous = self.stage.value if self.stage else 'inicio'
        logger.debug(f"[{self.flujo}] {previous} -> {stage.value}")
        self.stage = stage

    def finish(self, decision: ValidationDecision) -> ValidationDecision:
        logger.debug(f"[{self.flujo}] {self.stage.value} -> {ValidationStage.DONE.value}")
        logger.info(
            f"[{self.flujo}] {decision.estado}: {decision.mensaje} "
            f"(permitirGuardar={decision.permitir_guardar})"
        )
        return decision


class ValidationOrchestrator:
    """
    Entry point for CFDI validation.

    All collaborators can be injected; defaults are built from
    configuration. The SAT client defaults to the shared client so every
    orchestrator in the process shares one status cache.

    Example:
        >>> orchestrator = ValidationOrchestrator()
        >>> decision = orchestrator.compare_qr_with_record(qr_url, xml_bytes)
        >>> decision.es_valida
        True
    """

    def __init__(
        self,
        text_extractor: Optional[TextExtractor] = None,
        parser: Optional[FiscalDataParser] = None,
        reconciler: Optional[EvidenceReconciler] = None,
        sat_client: Optional[SatValidationClient] = None,
        qr_decoder: Optional[Any] = None
    ):
        self._text_extractor = text_extractor
        self.parser = parser or FiscalDataParser()
        self.reconciler = reconciler or EvidenceReconciler()
        self.sat_client = sat_client or get_default_client()
        self._qr_decoder = qr_decoder

    @property
    def text_extractor(self) -> TextExtractor:
        if self._text_extractor is None:
            self._text_extractor = TextExtractor()
        return self._text_extractor

    @property
    def qr_decoder(self) -> Any:
        if self._qr_decoder is None:
            self._qr_decoder = QRDecoder()
        return self._qr_decoder

    # =========================================================================
    # Flows
    # =========================================================================

    def validate_image(
        self,
        image_bytes: bytes,
        record: Optional[RecordInput] = None
    ) -> ValidationDecision:
        """
        Validate a photo or scan of an invoice.

        If a record is supplied, the OCR data is compared with it (lenient,
        advisory) and the record's fields take precedence for the SAT query.

        Raises:
            ValidationError: If the record is malformed.
        """
        reference = self._coerce_record(record) if record is not None else None
        run = ValidationRun(FLOW_IMAGE)

        run.advance(ValidationStage.EXTRACTING)
        extraction = self.text_extractor.extract_ocr(image_bytes)

        if not extraction.text.strip():
            return run.finish(ValidationDecision.incomplete(
                FLOW_IMAGE, run.stage, extraction.method, None,
                mensaje="No se pudo extraer texto del documento",
            ))

        run.advance(ValidationStage.PARSING)
        evidence = self.parser.parse(extraction.text)

        reconciliation = None
        if reference is not None:
            run.advance(ValidationStage.RECONCILING)
            reconciliation = self.reconciler.reconcile(reference, evidence, ReconciliationMode.LENIENT)

        trusted = reference.fill_missing(evidence) if reference is not None else evidence

        return self._authorize(run, trusted, extraction.method, reconciliation)

    def compare_qr_with_record(self, qr_payload: str, record: RecordInput) -> ValidationDecision:
        """
        Compare a decoded QR payload with the structured record.

        No SAT query is made; the decision is advisory and never blocks
        storing.

        Raises:
            ValidationError: If the record is malformed or empty.
        """
        reference = self._coerce_record(record)
        return self._compare_qr(ValidationRun(FLOW_QR), qr_payload, reference)

    def compare_qr_image_with_record(self, image_bytes: bytes, record: RecordInput) -> ValidationDecision:
        """
        Decode the QR of a PDF or image and compare it with the record.

        Raises:
            ValidationError: If the record is malformed or empty.
        """
        reference = self._coerce_record(record)
        run = ValidationRun(FLOW_QR)

        run.advance(ValidationStage.EXTRACTING)
        payload = find_sat_payload(self.qr_decoder.decode(image_bytes))

        if payload is None:
            return run.finish(ValidationDecision.incomplete(
                FLOW_QR, run.stage, 'qr', None,
                mensaje="No se encontró un código QR del SAT en el documento",
            ))

        return self._compare_qr(run, payload, reference)

    def validate_pdf(self, pdf_bytes: bytes) -> ValidationDecision:
        """
        Validate a CFDI PDF without a structured record.

        Direct text is used when available; if it leaves fields missing,
        OCR of the same document fills them.
        """
        run = ValidationRun(FLOW_PDF)

        run.advance(ValidationStage.EXTRACTING)
        extraction = self.text_extractor.extract_with_details(pdf_bytes)
        method = extraction.method

        if not extraction.text.strip():
            return run.finish(ValidationDecision.incomplete(
                FLOW_PDF, run.stage, method, None,
                mensaje="No se pudo extraer texto del documento",
            ))

        run.advance(ValidationStage.PARSING)
        fiscal = self.parser.parse(extraction.text)

        if not fiscal.is_complete and method == 'texto_directo':
            logger.info(f"Missing {fiscal.missing_fields()} after direct text, trying OCR")
            ocr = self.text_extractor.extract_ocr(pdf_bytes)
            if ocr.text.strip():
                fiscal = fiscal.fill_missing(self.parser.parse(ocr.text))
                method = 'texto_directo+ocr'

        return self._authorize(run, fiscal, method)

    # =========================================================================
    # Shared steps
    # =========================================================================

    def _compare_qr(self, run: ValidationRun, qr_payload: str, reference: FiscalTuple) -> ValidationDecision:
        run.advance(ValidationStage.PARSING)
        qr_data = self.parser.parse_qr_url(qr_payload)

        if not qr_data.is_complete:
            return run.finish(ValidationDecision.incomplete(
                FLOW_QR, run.stage, 'qr', qr_data,
                mensaje="Datos del QR no válidos o incompletos",
            ))

        run.advance(ValidationStage.RECONCILING)
        result = self.reconciler.reconcile(reference, qr_data, ReconciliationMode.STRICT)
        return run.finish(ValidationDecision.from_reconciliation(result, FLOW_QR, 'qr', qr_data))

    def _authorize(
        self,
        run: ValidationRun,
        fiscal: FiscalTuple,
        method: Optional[str],
        reconciliation=None
    ) -> ValidationDecision:
        if not fiscal.is_complete:
            return run.finish(ValidationDecision.incomplete(
                run.flujo, run.stage, method, fiscal, reconciliacion=reconciliation
            ))

        run.advance(ValidationStage.AUTHORIZING)
        status = self.sat_client.validate_tuple(fiscal)
        return run.finish(ValidationDecision.from_authority(
            status, run.flujo, method, fiscal, reconciliation
        ))

    def _coerce_record(self, record: RecordInput) -> FiscalTuple:
        """
        Accept a FiscalTuple, a dictionary or CFDI XML bytes as the record.

        Raises:
            ValidationError: If the record is of an unknown type, malformed
                or has no fiscal fields.
            CorruptedFileError: If XML bytes cannot be parsed.
        """
        if isinstance(record, FiscalTuple):
            reference = record
        elif isinstance(record, dict):
            reference = FiscalTuple.from_dict(record)
        elif isinstance(record, (bytes, bytearray)):
            reference = read_cfdi_xml(bytes(record))
        else:
            raise ValidationError(
                'registro', type(record).__name__,
                'El registro debe ser un FiscalTuple, un diccionario o un XML CFDI'
            )

        if reference.is_empty:
            raise ValidationError('registro', None, 'El registro no contiene datos fiscales')

        return reference
