from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from clinic_import.models.entities import EntitySpec, EntityType, get_entity_spec
from clinic_import.models.row_data import RowData
from clinic_import.models.staging import StagingCell, StagingRow
from clinic_import.models.validation import CellCheck, ValidationFinding

from .aggregator import aggregate_findings, blocking
from .validator import validate_cell

"""Editable staging grid.

Holds the parsed file as a 2-D table of StagingCells. Every mutation (load,
edit, add, delete, reset) re-runs the aggregator before returning, so the
findings list is always current when the session asks whether import may
start. All state lives in memory; nothing is persisted.
"""

__all__ = [
    "GridIndexError",
    "StagingGrid",
]

logger = logging.getLogger(__name__)


class GridIndexError(IndexError):
    """Raised for a row or column that does not exist in the grid."""


class StagingGrid:
    def __init__(self, entity: EntityType | EntitySpec | str) -> None:
        self.spec = entity if isinstance(entity, EntitySpec) else get_entity_spec(entity)
        self.headers: list[str] = []
        self.rows: list[StagingRow] = []
        self._findings: list[ValidationFinding] = []

    # ------------------------------------------------------------------ mutations

    def load(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[ValidationFinding]:
        """Replace the grid content with freshly parsed values."""
        self.headers = list(headers)
        width = len(self.headers)
        self.rows = []
        for raw in rows:
            values = [str(v) for v in raw][:width]
            values += [""] * (width - len(values))
            self.rows.append(StagingRow.from_values(values))
        logger.debug("grid loaded entity=%s rows=%d cols=%d", self.spec.entity.value, len(self.rows), width)
        return self.revalidate()

    def edit_cell(self, row: int, column: int | str, new_value: str) -> CellCheck:
        """Set a cell value and return that cell's own validation result."""
        col_index = self._column_index(column)
        cell = self._cell(row, col_index)
        cell.value = new_value
        check = validate_cell(new_value, self.headers[col_index], self.spec)
        self.revalidate()
        return check

    def add_row(self) -> int:
        """Append an empty row; returns its index."""
        self.rows.append(StagingRow.blank(len(self.headers)))
        self.revalidate()
        return len(self.rows) - 1

    def delete_row(self, row: int) -> None:
        self._check_row(row)
        del self.rows[row]
        self.revalidate()

    def reset_all(self) -> None:
        """Undo every edit: each cell goes back to its parsed value."""
        for r in self.rows:
            for cell in r.cells:
                cell.reset()
        self.revalidate()

    def revalidate(self) -> list[ValidationFinding]:
        self._findings = aggregate_findings(self.headers, self.rows, self.spec)
        return self._findings

    # ------------------------------------------------------------------ queries

    @property
    def findings(self) -> list[ValidationFinding]:
        return list(self._findings)

    @property
    def blocking_findings(self) -> list[ValidationFinding]:
        return blocking(self._findings)

    @property
    def has_blocking_errors(self) -> bool:
        return bool(self.blocking_findings)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def cell(self, row: int, column: int | str) -> StagingCell:
        return self._cell(row, self._column_index(column))

    def edited_cells(self) -> list[tuple[int, str]]:
        """(row, column) pairs whose value differs from the parsed one."""
        out = []
        for r_idx, r in enumerate(self.rows):
            for c_idx, cell in enumerate(r.cells):
                if cell.is_edited:
                    out.append((r_idx, self.headers[c_idx]))
        return out

    def missing_required_columns(self) -> list[str]:
        return self.spec.missing_required_columns(self.headers)

    def to_rows(self) -> list[RowData]:
        """Snapshot for the import executor (current values, source row numbers)."""
        return [RowData.from_grid(i, self.headers, r.values()) for i, r in enumerate(self.rows)]

    def to_dataframe(self) -> pd.DataFrame:
        """Current values as a DataFrame (preview / inspection)."""
        return pd.DataFrame([r.values() for r in self.rows], columns=self.headers)

    def clear(self) -> None:
        self.headers = []
        self.rows = []
        self._findings = []

    # ------------------------------------------------------------------ helpers

    def _check_row(self, row: int) -> None:
        if not 0 <= row < len(self.rows):
            raise GridIndexError(f"row {row} out of range (rows={len(self.rows)})")

    def _column_index(self, column: int | str) -> int:
        if isinstance(column, int):
            if not 0 <= column < len(self.headers):
                raise GridIndexError(f"column {column} out of range (cols={len(self.headers)})")
            return column
        try:
            return self.headers.index(column)
        except ValueError:
            raise GridIndexError(f"column '{column}' not in headers: {self.headers}") from None

    def _cell(self, row: int, col_index: int) -> StagingCell:
        self._check_row(row)
        return self.rows[row].cells[col_index]
