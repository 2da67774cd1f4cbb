from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

"""Record store interface.

The clinic data lives in a hosted PostgreSQL-backed service. The importer only
needs three calls, each answering ``{data, error}`` instead of raising for
ordinary store failures (constraint violations, permission errors, ...):

    insert(table, records)          -> StoreResponse(data=inserted rows)
    select(table, filters, ...)     -> StoreResponse(data=matching rows)
    update(table, patch, filters)   -> StoreResponse(data=updated rows)

Filters are (column, op, value) triples; supported ops are ``eq`` and
``ilike`` (SQL ILIKE pattern, ``%`` / ``_`` wildcards).
"""

__all__ = [
    "Filter",
    "eq",
    "ilike",
    "StoreFailure",
    "StoreResponse",
    "StoreError",
    "RecordStore",
    "SUPPORTED_OPS",
]

SUPPORTED_OPS = ("eq", "ilike")


class StoreError(Exception):
    """Raised when the store can not be reached at all (connect time)."""


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in SUPPORTED_OPS:
            raise ValueError(f"unsupported filter op: {self.op}")


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, "ilike", pattern)


@dataclass(frozen=True)
class StoreFailure:
    """Error half of a store response (message as reported by the store)."""
    message: str
    code: str | None = None
    details: str | None = None


@dataclass(frozen=True)
class StoreResponse:
    data: list[dict[str, Any]] | None = None
    error: StoreFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def first(self) -> dict[str, Any] | None:
        if self.data:
            return self.data[0]
        return None


class RecordStore(Protocol):
    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> StoreResponse: ...

    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> StoreResponse: ...

    def update(self, table: str, patch: dict[str, Any], filters: Iterable[Filter]) -> StoreResponse: ...
