from __future__ import annotations

import math
import re
from datetime import date, datetime

import pandas as pd

"""Lenient cell value coercion shared by the validator and the importers.

All helpers take a raw cell string and return None when the value can not be
interpreted, never raising. Date parsing goes through pandas.to_datetime so
that the same formats the clinic staff type in spreadsheets (``2025-01-20``,
``2025-01-20 10:00``, ``20/01/2025``) are accepted everywhere.
"""

__all__ = [
    "PAYMENT_METHODS",
    "TRUTHY_STRINGS",
    "parse_number",
    "parse_positive_number",
    "parse_positive_int",
    "parse_datetime",
    "parse_date",
    "digits_only",
    "normalize_sex",
    "normalize_payment_method",
    "split_list",
    "parse_bool",
]

PAYMENT_METHODS = ("efectivo", "transferencia", "bbva", "clip")
TRUTHY_STRINGS = frozenset({"true", "1", "si", "sí", "yes", "x"})

_INT_RE = re.compile(r"^[+-]?\d+$")
_HAS_DIGIT = re.compile(r"\d")


def parse_number(raw: str | None) -> float | None:
    if raw is None:
        return None
    text = raw.strip().replace("$", "")
    if not text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    if not math.isfinite(num):
        return None
    return num


def parse_positive_number(raw: str | None) -> float | None:
    """Number strictly greater than zero, else None."""
    num = parse_number(raw)
    if num is None or num <= 0:
        return None
    return num


def parse_positive_int(raw: str | None) -> int | None:
    """Integer >= 1, else None. Decimals ("1.5") are rejected."""
    if raw is None:
        return None
    text = raw.strip()
    if not _INT_RE.match(text):
        return None
    value = int(text)
    return value if value >= 1 else None


def parse_datetime(raw: str | None) -> datetime | None:
    # pandas acepta "now" / "today"; una fecha real siempre trae dígitos
    if raw is None or not _HAS_DIGIT.search(raw):
        return None
    try:
        ts = pd.to_datetime(raw.strip())
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def parse_date(raw: str | None) -> date | None:
    dt = parse_datetime(raw)
    return dt.date() if dt is not None else None


def digits_only(raw: str) -> str:
    return re.sub(r"\D", "", raw)


def normalize_sex(raw: str | None) -> str | None:
    """'m'/'M' -> 'M', 'f'/'F' -> 'F', anything else -> None."""
    if raw is None:
        return None
    text = raw.strip().upper()
    return text if text in ("M", "F") else None


def normalize_payment_method(raw: str | None) -> str | None:
    if raw is None:
        return None
    text = raw.strip().lower()
    return text if text in PAYMENT_METHODS else None


def split_list(raw: str | None, sep: str = ";") -> list[str]:
    """Split a delimited cell, trimming items and dropping empties."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(sep) if item.strip()]


def parse_bool(raw: str | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in TRUTHY_STRINGS
