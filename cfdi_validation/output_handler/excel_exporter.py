"""
Excel Exporter Module.

This module writes validation decisions to an Excel report. Uses openpyxl
for modern Excel format support.

Features:
    - Formatted headers
    - Status cells colored by SAT state
    - Auto-column width
    - Metadata sheet

Author: ML Engineering Team
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.helpers import ensure_directory, generate_timestamp
from cfdi_validation.utils.exceptions import ExcelExportError
from cfdi_validation.orchestrator import ValidationDecision

# Initialize module logger
logger = get_logger(__name__)


DecisionInput = Union[ValidationDecision, Dict[str, Any]]


class ExcelExporter:
    """
    Exports validation decisions to Excel format.

    Accepts ValidationDecision objects or their to_dict() output. A
    dictionary may carry an 'archivo' key naming the source document.

    Attributes:
        output_dir: Directory for output files
        include_metadata: Whether to include the metadata sheet
        sheet_name: Name of the main sheet

    Example:
        >>> exporter = ExcelExporter()
        >>> filepath = exporter.export(decisions, "validaciones.xlsx")
    """

    # (header, getter key)
    COLUMNS = [
        ('Archivo', 'archivo'),
        ('Flujo', 'flujo'),
        ('UUID', 'uuid'),
        ('RFC Emisor', 'rfcEmisor'),
        ('RFC Receptor', 'rfcReceptor'),
        ('Total', 'total'),
        ('Estado', 'estado'),
        ('Permitir Guardar', 'permitirGuardar'),
        ('Mensaje', 'mensaje'),
    ]

    METADATA_COLUMNS = [
        ('Archivo', 'archivo'),
        ('Etapa', 'etapa'),
        ('Método de Extracción', 'metodoExtraccion'),
        ('Código Estatus', 'codigoEstatus'),
        ('Desde Caché', 'fromCache'),
        ('Coincidencia (%)', 'porcentajeCoincidencia'),
        ('Datos Faltantes', 'datosFaltantes'),
        ('Timestamp', 'timestamp'),
    ]

    STATUS_COLORS = {
        'Vigente': 'C6EFCE',
        'Cancelado': 'FFC7CE',
        'No Encontrado': 'FFC7CE',
        'Error': 'FFC7CE',
        'Sin Verificar': 'FFEB9C',
    }

    def __init__(self) -> None:
        """Initialize the Excel exporter with configuration."""
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.include_metadata = get_config("output.excel.include_metadata", True)
        self.sheet_name = get_config("output.excel.sheet_name", "Validaciones")

        self._check_dependencies()

        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def _check_dependencies(self) -> None:
        try:
            import openpyxl
            self._openpyxl = openpyxl
        except ImportError:
            raise ImportError(
                "openpyxl is required for Excel export. "
                "Install with: pip install openpyxl"
            )

    def export(
        self,
        decisions: Union[DecisionInput, List[DecisionInput]],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Export validation decisions to an Excel file.

        Args:
            decisions: Single decision or list of decisions.
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses configured dir.

        Returns:
            Path to the created Excel file.

        Raises:
            ExcelExportError: If export fails.
        """
        if isinstance(decisions, (ValidationDecision, dict)):
            decisions = [decisions]

        if not decisions:
            raise ExcelExportError("No results", "No decisions to export")

        rows = [self._flatten(d) for d in decisions]

        out_dir = Path(output_dir) if output_dir else self.output_dir
        ensure_directory(out_dir)

        filepath = out_dir / (filename or self.get_default_filename())

        try:
            workbook = self._openpyxl.Workbook()

            self._create_data_sheet(workbook, rows)

            if self.include_metadata:
                self._create_metadata_sheet(workbook, rows)

            workbook.save(filepath)

        except Exception as e:
            logger.error(f"Excel export failed: {e}")
            raise ExcelExportError(str(filepath), str(e))

        logger.info(f"Excel file saved: {filepath} ({len(rows)} records)")
        return str(filepath)

    def _flatten(self, decision: DecisionInput) -> Dict[str, Any]:
        """One report row per decision."""
        data = decision.to_dict() if isinstance(decision, ValidationDecision) else dict(decision)
        fiscal = data.get('datosExtraidos') or {}
        reconciliation = data.get('reconciliacion') or {}

        row = dict(data)
        for key in ('uuid', 'rfcEmisor', 'rfcReceptor', 'total'):
            row[key] = fiscal.get(key)
        row['porcentajeCoincidencia'] = reconciliation.get('porcentajeCoincidencia')
        row['datosFaltantes'] = ', '.join(data.get('datosFaltantes') or [])
        return row

    @staticmethod
    def _cell_value(value: Any) -> Any:
        if isinstance(value, bool):
            return 'Sí' if value else 'No'
        if value is None:
            return ''
        return value

    def _create_data_sheet(self, workbook, rows: List[Dict[str, Any]]) -> None:
        from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

        sheet = workbook.active
        sheet.title = self.sheet_name

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        for col, (header_name, _) in enumerate(self.COLUMNS, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = thin_border

        for row_num, row in enumerate(rows, 2):
            for col, (_, key) in enumerate(self.COLUMNS, 1):
                cell = sheet.cell(row=row_num, column=col, value=self._cell_value(row.get(key)))
                cell.border = thin_border

                if key == 'total' and row.get(key) is not None:
                    cell.number_format = '#,##0.00'
                elif key == 'estado' and row.get(key) in self.STATUS_COLORS:
                    color = self.STATUS_COLORS[row[key]]
                    cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")

        self._adjust_widths(sheet, [name for name, _ in self.COLUMNS], len(rows))
        sheet.freeze_panes = 'A2'

    def _create_metadata_sheet(self, workbook, rows: List[Dict[str, Any]]) -> None:
        from openpyxl.styles import Font, PatternFill, Alignment

        sheet = workbook.create_sheet(title="Metadata")

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="548235", end_color="548235", fill_type="solid")

        for col, (header_name, _) in enumerate(self.METADATA_COLUMNS, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_num, row in enumerate(rows, 2):
            for col, (_, key) in enumerate(self.METADATA_COLUMNS, 1):
                sheet.cell(row=row_num, column=col, value=self._cell_value(row.get(key)))

        self._adjust_widths(sheet, [name for name, _ in self.METADATA_COLUMNS], len(rows))

    def _adjust_widths(self, sheet, headers: List[str], row_count: int) -> None:
        from openpyxl.utils import get_column_letter

        for col, header_name in enumerate(headers, 1):
            max_length = len(header_name)
            for row in range(2, row_count + 2):
                value = sheet.cell(row=row, column=col).value
                if value:
                    max_length = max(max_length, len(str(value)))

            sheet.column_dimensions[get_column_letter(col)].width = min(max_length + 2, 60)

    def get_default_filename(self) -> str:
        timestamp = generate_timestamp()
        pattern = get_config("output.excel.filename_pattern", "validaciones_cfdi_{timestamp}.xlsx")
        return pattern.format(timestamp=timestamp)
