from __future__ import annotations

from dataclasses import dataclass

"""RowData model: one staged row handed to the import executor.

The row_number refers to the position in the source file: the header is line 1,
so the first data row is 2 (grid index + 2).
"""

__all__ = [
    "RowData",
    "HEADER_OFFSET",
]

HEADER_OFFSET = 2


@dataclass(frozen=True)
class RowData:
    """Header-keyed snapshot of one staging row."""
    row_number: int
    values: dict[str, str]

    @classmethod
    def from_grid(cls, index: int, headers: list[str], values: list[str]) -> RowData:
        padded = list(values) + [""] * (len(headers) - len(values))
        return cls(row_number=index + HEADER_OFFSET, values=dict(zip(headers, padded)))

    def first_value(self, candidates: tuple[str, ...]) -> str:
        """Return the first non-blank value among candidate headers, else ''."""
        for name in candidates:
            raw = self.values.get(name)
            if raw is not None and raw.strip():
                return raw.strip()
        return ""
