"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the CFDI
validation system. Only input errors are meant to reach the caller;
the rest are caught at component boundaries and turned into degraded
(but successful) results.

Exception Hierarchy:
    CfdiValidationError (base)
    ├── InputError
    │   ├── ValidationError
    │   ├── UnsupportedFileTypeError
    │   └── CorruptedFileError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   └── OCRProcessingError
    ├── AuthorityError
    │   ├── AuthorityTimeoutError
    │   ├── AuthorityConnectionError
    │   └── AuthorityResponseError
    └── OutputError
        └── ExcelExportError
"""


class CfdiValidationError(Exception):
    """
    Base exception for all CFDI validation errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(CfdiValidationError):
    """Base exception for caller-supplied input problems."""
    pass


class ValidationError(InputError):
    """
    Raised when a required fiscal field is missing or malformed.

    Example:
        >>> raise ValidationError("rfcEmisor", "", "RFC Emisor es requerido")
    """

    def __init__(self, field: str, value=None, reason: str = None):
        message = reason or f"Campo inválido: {field}"
        details = {"field": field, "value": value}
        self.field = field
        super().__init__(message, details)


class UnsupportedFileTypeError(InputError):
    """Raised when a document is neither a PDF nor a supported image."""

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class CorruptedFileError(InputError):
    """Raised when a document or structured record cannot be read."""

    def __init__(self, source: str, reason: str = None):
        message = f"Corrupted or unreadable document: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(CfdiValidationError):
    """Base exception for OCR-related errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not available."""

    def __init__(self, engine_name: str):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        super().__init__(message, details)


class OCRProcessingError(OCRError):
    """Raised when OCR processing fails."""

    def __init__(self, source: str, reason: str = None):
        message = f"OCR processing failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# AUTHORITY (SAT) ERRORS
# =============================================================================

class AuthorityError(CfdiValidationError):
    """Base exception for SAT web service errors."""
    pass


class AuthorityTimeoutError(AuthorityError):
    """Raised when the SAT call exceeds its timeout."""

    def __init__(self, timeout: float):
        message = "Timeout al consultar SAT"
        details = {"timeout_seconds": timeout}
        super().__init__(message, details)


class AuthorityConnectionError(AuthorityError):
    """Raised when the SAT endpoint cannot be reached."""

    def __init__(self, endpoint: str, reason: str = None):
        message = "Error de conexión con SAT"
        details = {"endpoint": endpoint, "reason": reason}
        super().__init__(message, details)


class AuthorityResponseError(AuthorityError):
    """Raised when the SAT response is not a well-formed Consulta result."""

    def __init__(self, reason: str, status_code: int = None):
        message = f"Respuesta SAT inválida: {reason}"
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(CfdiValidationError):
    """Base exception for output handling errors."""
    pass


class ExcelExportError(OutputError):
    """Raised when Excel export fails."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to export Excel file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'CfdiValidationError',
    'InputError',
    'ValidationError',
    'UnsupportedFileTypeError',
    'CorruptedFileError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'AuthorityError',
    'AuthorityTimeoutError',
    'AuthorityConnectionError',
    'AuthorityResponseError',
    'OutputError',
    'ExcelExportError',
]
