"""
Helper Utilities Module.

Small, generic functions shared across the CFDI validation system.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - iso_timestamp: Current time as ISO-8601 string
    - detect_document_type: Classify raw bytes as PDF or image
    - mask_uuid: Shorten a UUID for log output
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union


# Magic numbers for supported document formats
PDF_SIGNATURE = b"%PDF"
IMAGE_SIGNATURES = (
    b"\x89PNG\r\n\x1a\n",   # PNG
    b"\xff\xd8\xff",        # JPEG
    b"II*\x00",             # TIFF little-endian
    b"MM\x00*",             # TIFF big-endian
    b"BM",                  # BMP
    b"GIF8",                # GIF
)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/reports")
        PosixPath('outputs/reports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension from a filepath, including the dot.

    Example:
        >>> get_file_extension("factura.PDF")
        ".pdf"
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Example:
        >>> generate_timestamp()
        "20260121_143022"
    """
    return datetime.now().strftime(format_str)


def iso_timestamp() -> str:
    """Current UTC time in ISO-8601 format."""
    return datetime.now(timezone.utc).isoformat()


def detect_document_type(data: bytes) -> Optional[str]:
    """
    Classify a document buffer by its leading magic bytes.

    Args:
        data: Raw document bytes.

    Returns:
        'pdf', 'image', or None if the format is not recognized.

    Example:
        >>> detect_document_type(b"%PDF-1.7 ...")
        'pdf'
    """
    if not data:
        return None

    # Some generators prepend whitespace or a BOM before the PDF header
    if PDF_SIGNATURE in data[:1024]:
        return 'pdf'

    if any(data.startswith(signature) for signature in IMAGE_SIGNATURES):
        return 'image'

    return None


def mask_uuid(uuid: Optional[str]) -> str:
    """Return the first 8 characters of a UUID followed by an ellipsis."""
    if not uuid:
        return "N/A"
    return f"{uuid[:8]}..."
