from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from .store import Filter, StoreFailure, StoreResponse

"""In-memory RecordStore used for dry runs (mock mode) and tests.

Mimics the parts of the hosted store the importer relies on: generated ``id``
and ``created_at`` columns, NOT NULL checks on the columns the clinic schema
requires, ILIKE matching and ORDER BY / LIMIT on select.
"""

__all__ = [
    "InMemoryRecordStore",
    "REQUIRED_COLUMNS",
]

# columnas NOT NULL del esquema de la clínica
REQUIRED_COLUMNS: dict[str, set[str]] = {
    "patients": {"nombre_completo"},
    "services": {"nombre", "zona", "precio_base"},
    "appointments": {"patient_id", "service_id", "fecha_hora"},
    "payments": {"patient_id", "monto", "metodo_pago"},
}


def _ilike_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    escaped = False
    for ch in pattern:
        if escaped:
            parts.append(re.escape(ch))
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _matches(row: dict[str, Any], f: Filter) -> bool:
    value = row.get(f.column)
    if f.op == "eq":
        return value == f.value
    if value is None:
        return False
    return _ilike_regex(str(f.value)).fullmatch(str(value)) is not None


class InMemoryRecordStore:
    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        required_columns: dict[str, set[str]] | None = None,
    ) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {k: list(v) for k, v in (tables or {}).items()}
        self.required_columns = REQUIRED_COLUMNS if required_columns is None else required_columns
        self.calls: list[tuple[str, str]] = []  # (operation, table) en orden

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> StoreResponse:
        self.calls.append(("insert", table))
        required = self.required_columns.get(table, set())
        for record in records:
            missing = sorted(c for c in required if record.get(c) is None)
            if missing:
                return StoreResponse(
                    error=StoreFailure(
                        message=f'null value in column "{missing[0]}" of relation "{table}" '
                        "violates not-null constraint",
                        code="23502",
                    )
                )
        inserted = []
        for record in records:
            row = {"id": str(uuid.uuid4()), "created_at": datetime.now(UTC).isoformat()}
            row.update(record)
            self.rows(table).append(row)
            inserted.append(dict(row))
        return StoreResponse(data=inserted)

    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> StoreResponse:
        self.calls.append(("select", table))
        filters = list(filters)
        found = [dict(r) for r in self.rows(table) if all(_matches(r, f) for f in filters)]
        if order_by:
            found.sort(key=lambda r: (r.get(order_by) is None, str(r.get(order_by, ""))))
        if limit is not None:
            found = found[:limit]
        return StoreResponse(data=found)

    def update(self, table: str, patch: dict[str, Any], filters: Iterable[Filter]) -> StoreResponse:
        self.calls.append(("update", table))
        filters = list(filters)
        updated = []
        for row in self.rows(table):
            if all(_matches(row, f) for f in filters):
                row.update(patch)
                updated.append(dict(row))
        return StoreResponse(data=updated)
