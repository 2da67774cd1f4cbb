from __future__ import annotations

from dataclasses import dataclass, field

from .validation import Severity

"""Staging cell / row models for the editable import grid.

A StagingCell remembers the value it was parsed with so that edits can be
detected and undone. ``is_edited`` is derived, never stored, so it can not
drift from ``value != original_value``.
"""

__all__ = [
    "StagingCell",
    "StagingRow",
]


@dataclass
class StagingCell:
    value: str
    original_value: str
    has_error: bool = False
    error_message: str | None = None
    severity: Severity | None = None

    @classmethod
    def parsed(cls, raw: str) -> StagingCell:
        return cls(value=raw, original_value=raw)

    @property
    def is_edited(self) -> bool:
        return self.value != self.original_value

    def clear_status(self) -> None:
        self.has_error = False
        self.error_message = None
        self.severity = None

    def reset(self) -> None:
        """Restore the parsed value and drop error/edited state."""
        self.value = self.original_value
        self.clear_status()


@dataclass
class StagingRow:
    """One grid row: a cell per header column, in header order."""
    cells: list[StagingCell] = field(default_factory=list)

    @classmethod
    def from_values(cls, values: list[str]) -> StagingRow:
        return cls(cells=[StagingCell.parsed(v) for v in values])

    @classmethod
    def blank(cls, width: int) -> StagingRow:
        return cls.from_values([""] * width)

    def values(self) -> list[str]:
        return [c.value for c in self.cells]

    def is_edited(self) -> bool:
        return any(c.is_edited for c in self.cells)
