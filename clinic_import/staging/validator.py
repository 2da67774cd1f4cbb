from __future__ import annotations

import re
from collections.abc import Callable

from clinic_import.models.entities import EntitySpec, EntityType, get_entity_spec
from clinic_import.models.validation import CellCheck

from .values import (
    PAYMENT_METHODS,
    digits_only,
    parse_datetime,
    parse_positive_int,
    parse_positive_number,
)

"""Per-cell field validator for the staging grid.

Dispatch is by column name. A required column that is blank fails with ERROR
severity; otherwise a blank cell is always valid. Non-blank cells are checked
by the first rule whose column set contains the column; later rules are not
consulted. Columns with no rule are unconstrained.

validate_cell() must answer for any string, including unicode and whitespace,
without raising.
"""

__all__ = [
    "validate_cell",
    "COLUMN_RULES",
]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15


def _check_phone(value: str) -> CellCheck:
    n = len(digits_only(value))
    if PHONE_MIN_DIGITS <= n <= PHONE_MAX_DIGITS:
        return CellCheck.ok()
    return CellCheck.warning(
        f"El teléfono debe tener entre {PHONE_MIN_DIGITS} y {PHONE_MAX_DIGITS} dígitos"
    )


def _check_sex(value: str) -> CellCheck:
    if value in ("M", "F", "m", "f"):
        return CellCheck.ok()
    return CellCheck.error("El sexo debe ser M o F")


def _check_positive_number(value: str) -> CellCheck:
    if parse_positive_number(value) is not None:
        return CellCheck.ok()
    return CellCheck.error("Debe ser un número mayor a 0")


def _check_payment_method(value: str) -> CellCheck:
    if value.lower() in PAYMENT_METHODS:
        return CellCheck.ok()
    return CellCheck.warning(f"Método de pago no reconocido ({', '.join(PAYMENT_METHODS)})")


def _check_date(value: str) -> CellCheck:
    if parse_datetime(value) is not None:
        return CellCheck.ok()
    return CellCheck.error("Fecha inválida")


def _check_positive_int(value: str) -> CellCheck:
    if parse_positive_int(value) is not None:
        return CellCheck.ok()
    return CellCheck.error("Debe ser un número entero mayor o igual a 1")


def _check_email(value: str) -> CellCheck:
    if _EMAIL_RE.match(value):
        return CellCheck.ok()
    return CellCheck.error("Correo electrónico inválido")


# Orden significativo: la primera regla que coincide es la única aplicada
COLUMN_RULES: list[tuple[frozenset[str], Callable[[str], CellCheck]]] = [
    (frozenset({"telefono"}), _check_phone),
    (frozenset({"sexo"}), _check_sex),
    (frozenset({"monto", "precio_base", "precio_total", "precio_sesion"}), _check_positive_number),
    (frozenset({"metodo_pago"}), _check_payment_method),
    (frozenset({"fecha_hora", "fecha_pago", "cumpleanos"}), _check_date),
    (frozenset({"numero_sesion", "duracion_minutos", "sesiones_recomendadas"}), _check_positive_int),
    (frozenset({"email"}), _check_email),
]


def validate_cell(value: str | None, column: str, entity: EntityType | EntitySpec | str) -> CellCheck:
    """Validate one cell value for ``column`` under the given entity type."""
    spec = entity if isinstance(entity, EntitySpec) else get_entity_spec(entity)
    text = (value or "").strip()

    if not text:
        if column in spec.required_fields:
            return CellCheck.error("Campo requerido")
        return CellCheck.ok()

    for columns, rule in COLUMN_RULES:
        if column in columns:
            return rule(text)
    return CellCheck.ok()
