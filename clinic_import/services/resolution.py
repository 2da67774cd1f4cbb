from __future__ import annotations

import logging
from typing import Any

from ..db.errors import describe_store_error, error_type_for
from ..db.store import RecordStore, StoreResponse, eq, ilike

"""Cross-entity reference resolution (patient / service lookups).

Payments and appointments name their patient and service in free text. They
are resolved against the store with a case-insensitive substring match; when
several records match, the first one by ``created_at`` wins. Patients fall
back to an exact phone match when the name finds nothing.
"""

__all__ = [
    "RowImportError",
    "escape_like",
    "resolve_patient",
    "resolve_service",
]

logger = logging.getLogger(__name__)

MATCH_ORDER = "created_at"


class RowImportError(Exception):
    """Row-level failure: the row is skipped and the run continues."""

    def __init__(self, message: str, error_type: str = "ROW_VALIDATION_ERROR") -> None:
        super().__init__(message)
        self.error_type = error_type


def escape_like(text: str) -> str:
    """Escape ILIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _checked(resp: StoreResponse) -> list[dict[str, Any]]:
    if resp.error is not None:
        raise RowImportError(describe_store_error(resp.error), error_type_for(resp.error))
    return resp.data or []


def resolve_patient(store: RecordStore, name: str, phone: str = "") -> dict[str, Any]:
    """Find the patient referenced by a payment / appointment row.

    Raises:
        RowImportError: no patient matches the name nor the phone
    """
    if name:
        found = _checked(
            store.select(
                "patients",
                [ilike("nombre_completo", f"%{escape_like(name)}%")],
                limit=1,
                order_by=MATCH_ORDER,
            )
        )
        if found:
            return found[0]
    if phone:
        found = _checked(store.select("patients", [eq("telefono", phone)], limit=1, order_by=MATCH_ORDER))
        if found:
            logger.debug("patient resolved by phone=%s (name=%r had no match)", phone, name)
            return found[0]
    ref = name or phone
    raise RowImportError(f"No se encontró el paciente '{ref}'", "PATIENT_NOT_FOUND")


def resolve_service(store: RecordStore, name: str) -> dict[str, Any]:
    """Find an active service by partial name.

    Raises:
        RowImportError: name blank or no active service matches
    """
    if name:
        found = _checked(
            store.select(
                "services",
                [ilike("nombre", f"%{escape_like(name)}%"), eq("is_active", True)],
                limit=1,
                order_by=MATCH_ORDER,
            )
        )
        if found:
            return found[0]
    raise RowImportError(f"No se encontró el servicio '{name}'", "SERVICE_NOT_FOUND")
