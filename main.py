#!/usr/bin/env python3
"""
CFDI Fiscal-Evidence Validation System - Main Entry Point.

Validates Mexican CFDI invoices against the SAT from their PDF, a photo
or their QR code, and writes the decisions to an Excel report.

Usage:
    Command Line:
        python main.py --input factura.pdf
        python main.py --input ./facturas/ --output reporte.xlsx
        python main.py --mode image --input foto.jpg --record factura.xml
        python main.py --mode qr --input factura.pdf --record factura.xml
        python main.py --mode qr --qr "https://verificacfdi...?id=..." --record factura.xml

    Python:
        from main import run_validation
        results = run_validation("factura.pdf")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, List, Dict, Any

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from cfdi_validation.utils.logger import setup_logger_from_config, get_logger, ROOT_LOGGER_NAME
from cfdi_validation.utils.helpers import ensure_directory
from cfdi_validation.utils.exceptions import CfdiValidationError, InputError


MODES = ('pdf', 'image', 'qr')


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="CFDI Fiscal-Evidence Validation System",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Validate a PDF against the SAT:
        python main.py --input factura.pdf

    Validate a directory of PDFs:
        python main.py --input ./facturas/ --output ./reportes/

    Validate a photo, comparing it with the XML:
        python main.py --mode image --input foto.jpg --record factura.xml

    Compare the printed QR with the XML:
        python main.py --mode qr --input factura.pdf --record factura.xml
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Input file or directory containing invoices"
    )

    parser.add_argument(
        "--mode", "-m",
        choices=MODES,
        default="pdf",
        help="Validation flow: pdf (text + SAT), image (OCR + SAT), qr (QR vs record)"
    )

    parser.add_argument(
        "--record", "-r",
        type=str,
        default=None,
        help="CFDI XML used as the structured record (required for --mode qr)"
    )

    parser.add_argument(
        "--qr",
        type=str,
        default=None,
        help="QR payload (SAT verification URL) to compare instead of decoding --input"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Excel report file or directory (default: configured output dir)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the decisions as JSON"
    )

    # Processing options
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--no-excel",
        action="store_true",
        help="Disable Excel output"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    args = parser.parse_args(argv)

    if args.input is None and args.qr is None:
        parser.error("--input is required unless --qr is given")
    if args.mode == 'qr' and args.record is None:
        parser.error("--mode qr requires --record")
    if args.qr is not None and args.mode != 'qr':
        parser.error("--qr can only be used with --mode qr")

    return args


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the validation system with configuration and logging.

    Returns:
        Initialized configuration manager.
    """
    import logging

    config = ConfigurationManager(args.config)

    # stdout carries the JSON document when --json is given
    logger = setup_logger_from_config(stream=sys.stderr if args.json else None)

    if args.debug:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = None

    if level is not None:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)

    logger.info("=" * 60)
    logger.info("CFDI FISCAL-EVIDENCE VALIDATION SYSTEM")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Mode: {args.mode}")
    logger.info(f"Input: {args.input or args.qr}")

    return config


def _resolve_report_path(output_path: Optional[str]):
    """Split --output into (directory, filename); either may be None."""
    if not output_path:
        return None, None

    output_p = Path(output_path)
    if output_p.suffix.lower() == '.xlsx':
        return str(output_p.parent), output_p.name
    return str(output_p), None


def run_validation(
    input_path: Optional[str] = None,
    mode: str = 'pdf',
    record_path: Optional[str] = None,
    qr_payload: Optional[str] = None,
    output_path: Optional[str] = None,
    config_path: Optional[str] = None,
    enable_excel: bool = True
) -> List[Dict[str, Any]]:
    """
    Run a validation flow over one document or a directory.

    This is the main programmatic entry point.

    Args:
        input_path: File or directory of PDFs/images.
        mode: 'pdf', 'image' or 'qr'.
        record_path: CFDI XML used as the structured record.
        qr_payload: QR payload to compare (qr mode, replaces decoding).
        output_path: Excel report file or directory.
        config_path: Optional custom configuration file path.
        enable_excel: Whether to write the Excel report.

    Returns:
        List of decision dictionaries, each with an 'archivo' key.

    Raises:
        InputError: If the input or record cannot be read.

    Example:
        >>> results = run_validation("facturas/")
        >>> [r['estado'] for r in results]
        ['Vigente', 'Cancelado']
    """
    logger = get_logger(__name__)

    ConfigurationManager(config_path)

    if mode not in MODES:
        raise InputError(f"Unknown mode: {mode}", {'mode': mode, 'supported': list(MODES)})

    from cfdi_validation.input_handler import InputHandler
    from cfdi_validation.fiscal_parser import read_cfdi_xml
    from cfdi_validation.orchestrator import ValidationOrchestrator

    orchestrator = ValidationOrchestrator()
    input_handler = InputHandler()

    record = None
    if record_path:
        record_file = Path(record_path)
        if not record_file.is_file():
            raise InputError(f"Record file not found: {record_path}", {'filepath': record_path})
        record = read_cfdi_xml(record_file.read_bytes())
        logger.info(f"Record loaded: {record_file.name}")

    results: List[Dict[str, Any]] = []

    if qr_payload is not None:
        decision = orchestrator.compare_qr_with_record(qr_payload, record)
        results.append({'archivo': 'qr', **decision.to_dict()})
        input_path = None

    if input_path is not None:
        input_p = Path(input_path)
        if input_p.is_dir():
            documents = input_handler.load_batch(input_p)
        else:
            documents = [input_handler.load(input_p)]

        logger.info(f"Processing {len(documents)} files...")

        for document in documents:
            if not document.success:
                logger.error(f"Skipping {document.filename}: {document.error}")
                continue

            logger.info(f"Processing: {document.filename}")

            try:
                if mode == 'pdf':
                    decision = orchestrator.validate_pdf(document.data)
                elif mode == 'image':
                    decision = orchestrator.validate_image(document.data, record)
                else:
                    decision = orchestrator.compare_qr_image_with_record(document.data, record)
            except CfdiValidationError as e:
                logger.error(f"Error processing {document.filename}: {e}")
                continue

            results.append({'archivo': document.filename, **decision.to_dict()})

            logger.info(
                f"  {document.filename}: {decision.estado} "
                f"(permitirGuardar={decision.permitir_guardar})"
            )

    if results and enable_excel:
        from cfdi_validation.output_handler import ExcelExporter

        output_dir, filename = _resolve_report_path(output_path)
        excel_path = ExcelExporter().export(results, filename=filename, output_dir=output_dir)
        logger.info(f"Excel output: {excel_path}")

    return results


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        if args.output and Path(args.output).suffix:
            ensure_directory(Path(args.output).parent)

        results = run_validation(
            input_path=args.input,
            mode=args.mode,
            record_path=args.record,
            qr_payload=args.qr,
            output_path=args.output,
            config_path=args.config,
            enable_excel=not args.no_excel
        )

        if args.json:
            print(json.dumps(results, ensure_ascii=False, indent=2))

        if not results:
            logger.error("No documents could be validated")
            return 1

        logger.info("=" * 60)
        logger.info(f"Validation complete. {len(results)} decision(s).")
        logger.info("=" * 60)

        return 0

    except CfdiValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
