from __future__ import annotations

import pandas as pd
import pytest

from clinic_import.models.validation import Severity
from clinic_import.staging.aggregator import aggregate_findings, blocking
from clinic_import.staging.grid import GridIndexError, StagingGrid
from clinic_import.staging.parser import parse_csv_text


def _services_grid() -> StagingGrid:
    parsed = parse_csv_text(
        "nombre,zona,precio_base\n"
        "Láser axilas,axilas,800\n"
        "Láser piernas,piernas,-5\n"
        "Láser bikini,bikini,950\n",
        "services",
    )
    grid = StagingGrid(parsed.entity)
    grid.load(parsed.headers, parsed.rows)
    return grid


class TestLoad:
    def test_load_validates_every_cell(self):
        grid = _services_grid()
        assert grid.row_count == 3
        assert [(f.row_index, f.column) for f in grid.findings] == [(1, "precio_base")]
        assert grid.has_blocking_errors is True

    def test_cell_status_reflects_validation(self):
        grid = _services_grid()
        bad = grid.cell(1, "precio_base")
        assert bad.has_error is True
        assert bad.severity is Severity.ERROR
        assert bad.error_message
        assert grid.cell(0, "precio_base").has_error is False

    def test_load_pads_short_rows(self):
        grid = StagingGrid("services")
        grid.load(["nombre", "zona", "precio_base"], [["A"]])
        assert grid.rows[0].values() == ["A", "", ""]
        # zona y precio_base vacíos y requeridos
        assert {f.column for f in grid.findings} == {"zona", "precio_base"}

    def test_warnings_do_not_block(self):
        grid = StagingGrid("patients")
        grid.load(["nombre_completo", "telefono"], [["Ana", "123"]])
        assert len(grid.findings) == 1
        assert grid.findings[0].severity is Severity.WARNING
        assert grid.has_blocking_errors is False


class TestEdit:
    def test_fixing_a_cell_clears_blocking(self):
        """Editing the bad price to a positive value unblocks the import."""
        grid = _services_grid()
        check = grid.edit_cell(1, "precio_base", "1500")
        assert check.valid is True
        assert grid.findings == []
        assert grid.has_blocking_errors is False

    def test_edit_returns_cell_check_for_bad_value(self):
        grid = _services_grid()
        check = grid.edit_cell(0, 2, "0")
        assert check.valid is False
        assert check.severity is Severity.ERROR
        assert len(grid.blocking_findings) == 2

    def test_edit_marks_cell_edited(self):
        grid = _services_grid()
        grid.edit_cell(0, "zona", "axila")
        assert grid.cell(0, "zona").is_edited is True
        assert grid.edited_cells() == [(0, "zona")]

    def test_edit_back_to_original_is_not_edited(self):
        grid = _services_grid()
        grid.edit_cell(0, "zona", "axila")
        grid.edit_cell(0, "zona", "axilas")
        assert grid.edited_cells() == []

    def test_edit_unknown_column(self):
        grid = _services_grid()
        with pytest.raises(GridIndexError):
            grid.edit_cell(0, "color", "rojo")
        with pytest.raises(GridIndexError):
            grid.edit_cell(0, 7, "x")

    def test_edit_out_of_range_row(self):
        grid = _services_grid()
        with pytest.raises(GridIndexError):
            grid.edit_cell(3, "zona", "x")
        with pytest.raises(IndexError):
            grid.edit_cell(-1, "zona", "x")


class TestRows:
    def test_add_row_appends_blank_row(self):
        grid = _services_grid()
        idx = grid.add_row()
        assert idx == 3
        assert grid.rows[idx].values() == ["", "", ""]
        # la fila nueva tiene tres campos requeridos vacíos
        assert len([f for f in grid.findings if f.row_index == idx]) == 3

    def test_delete_row_reindexes_findings(self):
        """Deleting row 0 moves the bad row from index 1 to index 0."""
        grid = _services_grid()
        grid.delete_row(0)
        assert grid.row_count == 2
        assert [(f.row_index, f.column) for f in grid.findings] == [(0, "precio_base")]
        assert all(f.row_index < grid.row_count for f in grid.findings)

    def test_delete_bad_row_clears_blocking(self):
        grid = _services_grid()
        grid.delete_row(1)
        assert grid.findings == []
        assert grid.has_blocking_errors is False

    def test_delete_out_of_range(self):
        grid = _services_grid()
        with pytest.raises(GridIndexError):
            grid.delete_row(5)


class TestReset:
    def test_reset_all_restores_parsed_state(self):
        grid = _services_grid()
        before_values = [r.values() for r in grid.rows]
        before_findings = grid.findings

        grid.edit_cell(1, "precio_base", "1500")
        grid.edit_cell(2, "zona", "")
        grid.reset_all()

        assert [r.values() for r in grid.rows] == before_values
        assert grid.findings == before_findings
        assert grid.edited_cells() == []

    def test_clear_empties_grid(self):
        grid = _services_grid()
        grid.clear()
        assert grid.is_empty
        assert grid.headers == []
        assert grid.findings == []


class TestSnapshots:
    def test_to_rows_uses_source_row_numbers(self):
        grid = _services_grid()
        rows = grid.to_rows()
        assert [r.row_number for r in rows] == [2, 3, 4]
        assert rows[0].values == {"nombre": "Láser axilas", "zona": "axilas", "precio_base": "800"}

    def test_to_rows_reflects_edits(self):
        grid = _services_grid()
        grid.edit_cell(1, "precio_base", "1500")
        assert grid.to_rows()[1].values["precio_base"] == "1500"

    def test_to_dataframe(self):
        grid = _services_grid()
        df = grid.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["nombre", "zona", "precio_base"]
        assert df.shape == (3, 3)
        assert df.iloc[2]["nombre"] == "Láser bikini"

    def test_missing_required_columns_accepts_aliases(self):
        grid = StagingGrid("payments")
        grid.load(["paciente", "cantidad"], [["Ana", "100"]])
        assert grid.missing_required_columns() == ["metodo_pago"]


def test_aggregate_is_row_major_and_blocking_filters_errors():
    grid = StagingGrid("patients")
    grid.load(
        ["nombre_completo", "telefono", "sexo"],
        [["", "12", "X"], ["Ana", "5551234567", "F"], ["Luis", "1", "M"]],
    )
    findings = aggregate_findings(grid.headers, grid.rows, grid.spec)
    assert [(f.row_index, f.column) for f in findings] == [
        (0, "nombre_completo"),
        (0, "telefono"),
        (0, "sexo"),
        (2, "telefono"),
    ]
    assert [f.column for f in blocking(findings)] == ["nombre_completo", "sexo"]
