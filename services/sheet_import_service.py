"""
Sheet Import Service - Framework-agnostic line-check template import.

This module converts an uploaded line-check worksheet into an ordered list
of form lines (section headers, temperature fields and date fields), with
progress callback support for API and CLI integration.

Row classification:
    - The first cell is the top-left of a merge spanning the full
      header-to-trailing-column range (A:E by default) -> section
    - Column B mentions the temperature marker ("Record Temp"), or the
      label contains a bracketed range "[min*-max*]"     -> temperature
    - Everything else                                   -> date
"""

import hashlib
import logging
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import openpyxl
from openpyxl.utils import get_column_letter

from backend.models.schema import LineType
from services.label_service import LabelParser

logger = logging.getLogger(__name__)

# Default configuration (can be overridden)
DEFAULT_SHEET_HINT = 'line check'
DEFAULT_DATA_START_ROW = 7
DEFAULT_SECTION_FIRST_COLUMN = 1  # A
DEFAULT_SECTION_LAST_COLUMN = 5   # E
DEFAULT_TEMPERATURE_MARKER = LabelParser.DEFAULT_TEMPERATURE_MARKER


class SheetImportError(Exception):
    """Base error for worksheet import failures."""


class NoDataError(SheetImportError):
    """Raised when a worksheet yields zero recognised rows."""

    def __init__(self, sheet_name: Optional[str] = None):
        self.sheet_name = sheet_name
        message = "No rows found. Check that you selected the right sheet."
        if sheet_name:
            message = f"No rows found in sheet '{sheet_name}'. Check that you selected the right sheet."
        super().__init__(message)


class SheetNotFoundError(SheetImportError):
    """Raised when an explicitly requested sheet does not exist."""


@dataclass(frozen=True)
class MergeRange:
    """Rectangular merged-cell span using 1-based rows and columns."""

    min_row: int
    min_col: int
    max_row: int
    max_col: int

    def spans_columns(self, first_col: int, last_col: int) -> bool:
        return self.min_col == first_col and self.max_col == last_col

    @property
    def coord(self) -> str:
        return (f"{get_column_letter(self.min_col)}{self.min_row}:"
                f"{get_column_letter(self.max_col)}{self.max_row}")


@dataclass
class SheetGrid:
    """
    Plain 2D view of a worksheet: cell values plus merge ranges.

    Cells are keyed by 1-based (row, column). Empty cells are absent.
    """

    title: str
    cells: Dict[Tuple[int, int], Any] = field(default_factory=dict)
    merges: List[MergeRange] = field(default_factory=list)
    max_row: int = 0

    def value(self, row: int, col: int) -> Any:
        return self.cells.get((row, col))

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[Any]], merges: Iterable[MergeRange] = (),
                  title: str = 'Sheet1') -> 'SheetGrid':
        """Build a grid from row-major values, starting at row 1 column A."""
        cells = {}
        max_row = 0
        for row_idx, row in enumerate(rows, start=1):
            max_row = row_idx
            for col_idx, value in enumerate(row, start=1):
                if value is not None:
                    cells[(row_idx, col_idx)] = value
        return cls(title=title, cells=cells, merges=list(merges), max_row=max_row)

    @classmethod
    def from_worksheet(cls, worksheet) -> 'SheetGrid':
        """
        Build a grid from an openpyxl worksheet.

        Merged-cell placeholders carry no value, so only the top-left cell of
        each merge contributes text.
        """
        cells = {}
        for row in worksheet.iter_rows():
            for cell in row:
                if cell.value is not None:
                    cells[(cell.row, cell.column)] = cell.value

        merges = [
            MergeRange(m.min_row, m.min_col, m.max_row, m.max_col)
            for m in worksheet.merged_cells.ranges
        ]

        return cls(
            title=worksheet.title,
            cells=cells,
            merges=merges,
            max_row=worksheet.max_row or 0
        )


@dataclass
class FormLine:
    """One imported or edited form line."""

    type: str
    label: str
    description: str = ''
    min: Optional[float] = None
    max: Optional[float] = None

    def with_type(self, line_type: str) -> 'FormLine':
        """Return a copy with a new type; only temperature lines keep bounds."""
        if line_type == LineType.TEMPERATURE:
            return replace(self, type=line_type)
        return replace(self, type=line_type, min=None, max=None)

    @property
    def is_section(self) -> bool:
        return self.type == LineType.SECTION

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['type'] = str(LineType(self.type).value)
        return data


class SheetImportService:
    """
    Framework-agnostic worksheet import service.

    Parsing is a pure function of the grid: importing the same worksheet
    twice yields the same ordered lines.
    """

    def __init__(
        self,
        progress_callback: Optional[Callable[[str, float, str], None]] = None,
        sheet_hint: str = DEFAULT_SHEET_HINT,
        data_start_row: int = DEFAULT_DATA_START_ROW,
        section_first_column: int = DEFAULT_SECTION_FIRST_COLUMN,
        section_last_column: int = DEFAULT_SECTION_LAST_COLUMN,
        temperature_marker: str = DEFAULT_TEMPERATURE_MARKER
    ):
        """
        Initialize sheet import service.

        Args:
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
            sheet_hint: Substring used to pick the line-check sheet (case-insensitive)
            data_start_row: First 1-based row holding form lines
            section_first_column: First column of a section-header merge
            section_last_column: Last column of a section-header merge
            temperature_marker: Column B text marking a temperature row
        """
        self.progress_callback = progress_callback or (lambda *args: None)
        self.sheet_hint = sheet_hint
        self.data_start_row = data_start_row
        self.section_first_column = section_first_column
        self.section_last_column = section_last_column
        self.temperature_marker = temperature_marker
        self.parser = LabelParser()

        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'rows_scanned': 0,
            'rows_skipped': 0,
            'sections': 0,
            'temperature_fields': 0,
            'date_fields': 0,
            'ranges_extracted': 0,
        }

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Progress: {stage} ({percent:.1f}%) - {message}")

    def compute_file_hash(self, file_path: str) -> str:
        """Compute SHA256 hash of file."""
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)
        return sha256_hash.hexdigest()

    def select_sheet(self, sheet_names: List[str], sheet_name: Optional[str] = None) -> str:
        """
        Choose the worksheet to import.

        An explicit name must exist. Otherwise the first sheet whose name
        contains the sheet hint wins, falling back to the first sheet.
        """
        if not sheet_names:
            raise SheetNotFoundError("Workbook has no worksheets")

        if sheet_name is not None:
            if sheet_name not in sheet_names:
                raise SheetNotFoundError(
                    f"Sheet '{sheet_name}' not found. Available sheets: {', '.join(sheet_names)}"
                )
            return sheet_name

        hint = self.sheet_hint.lower()
        for name in sheet_names:
            if hint in name.lower():
                return name

        logger.debug(f"No sheet matching '{self.sheet_hint}', using first sheet '{sheet_names[0]}'")
        return sheet_names[0]

    def find_section_rows(self, merges: Iterable[MergeRange]) -> Set[int]:
        """Return the top rows of every merge spanning the section column range."""
        section_rows = set()
        for merge in merges:
            if merge.spans_columns(self.section_first_column, self.section_last_column):
                logger.debug(f"Section merge {merge.coord}")
                section_rows.add(merge.min_row)
        return section_rows

    def classify_row(self, grid: SheetGrid, row: int, section_rows: Set[int]) -> Optional[FormLine]:
        """
        Classify one worksheet row.

        Returns:
            FormLine, or None when the first cell is empty
        """
        value = grid.value(row, self.section_first_column)
        if value is None:
            return None

        raw_text = str(value).strip()
        if not raw_text:
            return None

        if row in section_rows:
            return FormLine(type=LineType.SECTION, label=raw_text)

        marker_cell = grid.value(row, self.section_first_column + 1)
        has_marker = self.parser.has_temperature_marker(
            str(marker_cell) if marker_cell is not None else None,
            self.temperature_marker
        )
        bounds = self.parser.extract_range(raw_text)
        is_temperature = has_marker or bounds is not None

        line = FormLine(
            type=LineType.TEMPERATURE if is_temperature else LineType.DATE,
            label=self.parser.clean_label(raw_text),
            description=self.parser.extract_description(raw_text)
        )

        if is_temperature and bounds is not None:
            line.min, line.max = bounds
            self.stats['ranges_extracted'] += 1

        return line

    def parse_grid(self, grid: SheetGrid) -> List[FormLine]:
        """
        Convert a worksheet grid into ordered form lines.

        Raises:
            NoDataError: If no row was recognised
        """
        self.stats = self._empty_stats()
        section_rows = self.find_section_rows(grid.merges)
        logger.debug(f"Section header rows in '{grid.title}': {sorted(section_rows)}")

        lines: List[FormLine] = []
        for row in range(self.data_start_row, grid.max_row + 1):
            self.stats['rows_scanned'] += 1
            line = self.classify_row(grid, row, section_rows)

            if line is None:
                self.stats['rows_skipped'] += 1
                continue

            logger.debug(f"Row {row}: {line.type} '{line.label}'")
            lines.append(line)

        if not lines:
            logger.warning(f"No rows recognised in sheet '{grid.title}'")
            raise NoDataError(grid.title)

        self.stats['sections'] = sum(1 for line in lines if line.type == LineType.SECTION)
        self.stats['temperature_fields'] = sum(1 for line in lines if line.type == LineType.TEMPERATURE)
        self.stats['date_fields'] = sum(1 for line in lines if line.type == LineType.DATE)

        return lines

    def summarize(self, lines: List[FormLine]) -> Dict[str, int]:
        """Count imported lines per type."""
        return {
            'total': len(lines),
            'sections': sum(1 for line in lines if line.type == LineType.SECTION),
            'temperature_fields': sum(1 for line in lines if line.type == LineType.TEMPERATURE),
            'date_fields': sum(1 for line in lines if line.type == LineType.DATE),
        }

    def load_grid(self, file_path: str, sheet_name: Optional[str] = None) -> SheetGrid:
        """Open a workbook and build the grid of the selected sheet."""
        # read_only mode does not expose merged cells
        workbook = openpyxl.load_workbook(file_path, data_only=True)
        try:
            selected = self.select_sheet(workbook.sheetnames, sheet_name)
            logger.info(f"Using sheet '{selected}' of {len(workbook.sheetnames)}")
            return SheetGrid.from_worksheet(workbook[selected])
        finally:
            workbook.close()

    def import_file(self, file_path: str, sheet_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Import a line-check workbook.

        Args:
            file_path: Path to .xlsx/.xlsm file
            sheet_name: Optional explicit sheet name

        Returns:
            Import result dictionary:
            {
                'sheet_name': str,
                'file_hash': str,
                'lines': [FormLine, ...],
                'summary': {'total', 'sections', 'temperature_fields', 'date_fields'},
                'stats': dict
            }

        Raises:
            SheetNotFoundError: If the requested sheet does not exist
            NoDataError: If no rows were recognised
        """
        logger.info(f"Starting import of {file_path}")
        self._emit_progress('hashing', 0, 'Computing file hash...')
        file_hash = self.compute_file_hash(file_path)
        logger.info(f"File hash: {file_hash}")

        self._emit_progress('loading', 10, 'Opening workbook...')
        grid = self.load_grid(file_path, sheet_name)

        self._emit_progress('parsing', 40, f"Classifying rows of '{grid.title}'...")
        lines = self.parse_grid(grid)

        summary = self.summarize(lines)
        self._emit_progress(
            'complete', 100,
            f"{summary['total']} rows imported: {summary['sections']} section headers, "
            f"{summary['temperature_fields']} temperature fields, {summary['date_fields']} date fields"
        )

        return {
            'sheet_name': grid.title,
            'file_hash': file_hash,
            'lines': lines,
            'summary': summary,
            'stats': dict(self.stats)
        }
