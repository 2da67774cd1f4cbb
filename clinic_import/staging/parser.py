from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from clinic_import.models.entities import EntitySpec, get_entity_spec

"""CSV text parser for the import screen.

Contract:
- split on line breaks, drop lines that are blank after trimming
- first remaining line is the header, the rest are data rows
- every token is trimmed and stripped of double quotes
- data rows where every cell is empty are discarded
- rows are padded/truncated to the header width

This is a naive comma splitter: quoted commas and embedded newlines are not
supported. A proper tokenizer can replace ``_split_line`` without changing the
(headers, rows) shape handed to the staging grid.
"""

__all__ = [
    "ParseError",
    "EmptyFileError",
    "NoDataRowsError",
    "UnknownEntityError",
    "EncodingError",
    "ParsedCsv",
    "parse_csv_text",
    "read_csv_file",
]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ParseError(Exception):
    """Base class for structural file errors (fatal to the parse step)."""


class EmptyFileError(ParseError):
    """Raised when the file holds no non-blank line at all."""


class NoDataRowsError(ParseError):
    """Raised when only a header (or only blank rows) is present."""


class UnknownEntityError(ParseError):
    """Raised when the requested entity type is not importable."""


class EncodingError(ParseError):
    """Raised when the file bytes are not valid UTF-8."""


@dataclass(frozen=True)
class ParsedCsv:
    entity: EntitySpec
    headers: list[str]
    rows: list[list[str]]


def _split_line(line: str) -> list[str]:
    return [token.strip().replace('"', "") for token in line.split(",")]


def _fit(values: list[str], width: int) -> list[str]:
    if len(values) >= width:
        return values[:width]
    return values + [""] * (width - len(values))


def parse_csv_text(text: str, entity: str) -> ParsedCsv:
    """Parse raw CSV text for the given entity type.

    Raises:
        UnknownEntityError: entity is not patients/payments/appointments/services
        EmptyFileError: no non-blank line in ``text``
        NoDataRowsError: header present but no non-empty data row
    """
    try:
        spec = get_entity_spec(entity)
    except ValueError as e:
        raise UnknownEntityError(f"unknown entity type: {entity!r}") from e

    if text.startswith("\ufeff"):
        text = text[1:]

    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
    if not lines:
        raise EmptyFileError("El archivo está vacío")

    headers = _split_line(lines[0])
    width = len(headers)

    rows: list[list[str]] = []
    for line in lines[1:]:
        values = _fit(_split_line(line), width)
        if all(v == "" for v in values):
            continue
        rows.append(values)

    if not rows:
        raise NoDataRowsError("El archivo no contiene filas de datos")

    return ParsedCsv(entity=spec, headers=headers, rows=rows)


def read_csv_file(path: Path | str) -> str:
    """Read a CSV file as UTF-8, dropping a leading BOM.

    Raises:
        EncodingError: the file is not UTF-8 (e.g. a Latin-1 Excel export)
    """
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise EncodingError("El archivo no está en UTF-8") from e
