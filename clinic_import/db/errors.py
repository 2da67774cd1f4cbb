from __future__ import annotations

from .store import StoreFailure

"""Translate store failures into the messages shown in the import result.

Known SQLSTATE / API codes get a fixed Spanish message followed by the store's
own message; anything else keeps the store's message as is.
"""

__all__ = [
    "describe_store_error",
    "error_type_for",
]

_MESSAGES: dict[str, tuple[str, str]] = {
    # code -> (error_type, mensaje)
    "PGRST116": ("NOT_FOUND", "No se encontraron registros que coincidan con los criterios"),
    "23502": ("NOT_NULL_VIOLATION", "Falta un dato obligatorio para guardar el registro"),
    "23505": ("DUPLICATE_KEY", "Ya existe un registro con estos datos. Verifica los campos únicos."),
    "23503": (
        "FOREIGN_KEY_VIOLATION",
        "No se puede completar la operación. Verifica que todos los datos relacionados existan.",
    ),
    "23514": ("CHECK_VIOLATION", "Los datos no cumplen con las restricciones requeridas."),
    "42501": ("INSUFFICIENT_PRIVILEGE", "No tienes permisos para realizar esta acción."),
    "row_level_security_violated": ("RLS_VIOLATION", "No tienes permisos para acceder a estos datos."),
    "NETWORK_ERROR": ("NETWORK_ERROR", "Error de conexión. Verifica tu conexión a internet."),
}


def error_type_for(failure: StoreFailure) -> str:
    if failure.code in _MESSAGES:
        return _MESSAGES[failure.code][0]
    return "DATABASE_ERROR"


def describe_store_error(failure: StoreFailure) -> str:
    """Human-readable message for a failed store call."""
    if failure.code in _MESSAGES:
        friendly = _MESSAGES[failure.code][1]
        return f"{friendly} ({failure.message})" if failure.message else friendly
    if failure.code:
        return f"Error de base de datos: {failure.message}"
    return failure.message or "Ha ocurrido un error inesperado"
