"""
Main Input Handler Module.

Loads invoice documents from disk as raw bytes for the validation flows.
The document type is decided by content (magic bytes); the extension only
gates which files are picked up.

Usage:
    from cfdi_validation.input_handler import InputHandler

    handler = InputHandler()
    document = handler.load("factura.pdf")

    # All documents in a directory
    documents = handler.load_batch("./facturas/")

Classes:
    InputDocument: A loaded document
    InputHandler: Loads and validates input files
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import detect_document_type, get_file_extension
from cfdi_validation.utils.exceptions import (
    CorruptedFileError,
    InputError,
    UnsupportedFileTypeError,
)

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class InputDocument:
    """
    A document read from disk.

    Attributes:
        filepath: Original file path
        filename: Original filename
        file_type: 'pdf' or 'image' (from content)
        data: Raw bytes
        success: Whether loading succeeded
        error: Error message if loading failed
    """
    filepath: str
    filename: str
    file_type: Optional[str]
    data: bytes = b""
    success: bool = True
    error: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"InputDocument(filename='{self.filename}', "
            f"type='{self.file_type}', "
            f"bytes={len(self.data)}, "
            f"success={self.success})"
        )


class InputHandler:
    """
    Input handler for invoice files.

    Example:
        >>> handler = InputHandler()
        >>> document = handler.load("factura.pdf")
        >>> document.file_type
        'pdf'
    """

    DEFAULT_EXTENSIONS = ['.pdf', '.jpg', '.jpeg', '.png', '.tiff', '.tif', '.bmp']

    def __init__(self) -> None:
        self.supported_extensions = {
            ext.lower()
            for ext in get_config("input.supported_extensions", self.DEFAULT_EXTENSIONS)
        }
        logger.debug(f"InputHandler initialized with extensions: {sorted(self.supported_extensions)}")

    def validate_file(self, filepath: Union[str, Path]) -> Path:
        """
        Validate that a file exists, is supported and is not empty.

        Raises:
            InputError: If the path is missing or not a file.
            UnsupportedFileTypeError: If the extension is not supported.
            CorruptedFileError: If the file is empty.
        """
        path = Path(filepath)

        if not path.exists():
            raise InputError(f"File not found: {filepath}", {'filepath': str(filepath)})

        if not path.is_file():
            raise InputError(f"Path is not a file: {filepath}", {'filepath': str(filepath)})

        extension = get_file_extension(path)
        if extension not in self.supported_extensions:
            raise UnsupportedFileTypeError(extension, sorted(self.supported_extensions))

        if path.stat().st_size == 0:
            raise CorruptedFileError(str(filepath), "File is empty")

        return path

    def load(self, filepath: Union[str, Path]) -> InputDocument:
        """
        Read a document into memory.

        Input errors are reported in the returned document, not raised.
        """
        filepath = str(filepath)
        logger.info(f"Loading file: {filepath}")

        try:
            path = self.validate_file(filepath)
            data = path.read_bytes()
        except (InputError, OSError) as e:
            logger.error(f"Input error for {filepath}: {e}")
            return InputDocument(
                filepath=filepath,
                filename=Path(filepath).name,
                file_type=None,
                success=False,
                error=str(e),
            )

        file_type = detect_document_type(data)
        if file_type is None:
            logger.warning(f"Unrecognized document content: {path.name}")

        return InputDocument(
            filepath=filepath,
            filename=path.name,
            file_type=file_type,
            data=data,
        )

    def list_files(self, directory: Union[str, Path], recursive: bool = False) -> List[Path]:
        """
        Supported files in a directory, sorted.

        Raises:
            InputError: If the directory does not exist.
        """
        directory = Path(directory)

        if not directory.is_dir():
            raise InputError(f"Path is not a directory: {directory}", {'directory': str(directory)})

        pattern = "**/*" if recursive else "*"
        files = [
            path for path in directory.glob(pattern)
            if path.is_file() and get_file_extension(path) in self.supported_extensions
        ]
        return sorted(files)

    def load_batch(self, directory: Union[str, Path], recursive: bool = False) -> List[InputDocument]:
        """Load every supported document in a directory."""
        files = self.list_files(directory, recursive)
        logger.info(f"Found {len(files)} files to process in {directory}")

        documents = [self.load(path) for path in files]

        loaded = sum(1 for d in documents if d.success)
        logger.info(f"Batch loading complete: {loaded} loaded, {len(documents) - loaded} failed")
        return documents
