from __future__ import annotations

from collections.abc import Sequence

from clinic_import.models.entities import EntitySpec
from clinic_import.models.staging import StagingRow
from clinic_import.models.validation import Severity, ValidationFinding

from .validator import validate_cell

"""Validation aggregator: full recompute over every staged cell.

No state is carried between runs, so findings can never point at a row index
that no longer exists after a deletion. Cost is rows x columns per run, which
is fine at staging-grid scale.
"""

__all__ = [
    "aggregate_findings",
    "blocking",
]


def aggregate_findings(
    headers: Sequence[str],
    rows: Sequence[StagingRow],
    spec: EntitySpec,
) -> list[ValidationFinding]:
    """Validate every cell, refresh per-cell status, return findings row-major."""
    findings: list[ValidationFinding] = []
    for row_index, row in enumerate(rows):
        for col_index, column in enumerate(headers):
            if col_index >= len(row.cells):
                continue
            cell = row.cells[col_index]
            check = validate_cell(cell.value, column, spec)
            if check.valid:
                cell.clear_status()
                continue
            cell.has_error = True
            cell.error_message = check.message
            cell.severity = check.severity
            findings.append(
                ValidationFinding(
                    row_index=row_index,
                    column=column,
                    message=check.message or "",
                    severity=check.severity or Severity.ERROR,
                )
            )
    return findings


def blocking(findings: Sequence[ValidationFinding]) -> list[ValidationFinding]:
    return [f for f in findings if f.is_blocking]
