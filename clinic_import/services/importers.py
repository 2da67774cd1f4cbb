from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from ..db.store import RecordStore
from ..models.config_models import ImportContext
from ..models.entities import EntitySpec, EntityType, get_entity_spec
from ..models.row_data import RowData
from ..staging.values import (
    PAYMENT_METHODS,
    normalize_payment_method,
    normalize_sex,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_number,
    parse_positive_int,
    parse_positive_number,
    split_list,
)
from .resolution import RowImportError, resolve_patient, resolve_service

"""Per-entity row -> record conversion.

Each importer turns one staged row into the record inserted into its table,
applying the entity's business rules and resolving references. Any rule
violation raises RowImportError *before* the insert is attempted; the executor
records it against the row and moves on.
"""

__all__ = [
    "EntityImporter",
    "PatientImporter",
    "PaymentImporter",
    "AppointmentImporter",
    "ServiceImporter",
    "build_importer",
]

DEFAULT_PAYMENT_TYPE = "pago_sesion"
DEFAULT_APPOINTMENT_STATUS = "agendada"
DEFAULT_SESSION_NUMBER = 1
DEFAULT_DURATION_MINUTES = 60
DEFAULT_RECOMMENDED_SESSIONS = 10


class EntityImporter:
    entity: EntityType

    def __init__(self, store: RecordStore, context: ImportContext) -> None:
        self.store = store
        self.context = context
        self.spec: EntitySpec = get_entity_spec(self.entity)

    @property
    def table(self) -> str:
        return self.spec.table

    def field(self, row: RowData, name: str) -> str:
        return row.first_value(self.spec.candidates(name))

    def optional(self, row: RowData, name: str) -> str | None:
        return self.field(row, name) or None

    def label(self, row: RowData) -> str:
        """Short text identifying the row in progress messages."""
        return f"Fila {row.row_number}"

    def prepare(self, row: RowData) -> dict[str, Any]:
        raise NotImplementedError

    def _aware(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=ZoneInfo(self.context.timezone))
        return dt


class PatientImporter(EntityImporter):
    entity = EntityType.PATIENTS

    def label(self, row: RowData) -> str:
        return self.field(row, "nombre_completo") or super().label(row)

    def prepare(self, row: RowData) -> dict[str, Any]:
        nombre = self.field(row, "nombre_completo")
        if not nombre:
            raise RowImportError("Nombre completo requerido", "MISSING_REQUIRED_FIELD")

        birthday = parse_date(self.field(row, "cumpleanos"))
        return {
            "nombre_completo": nombre,
            "telefono": self.optional(row, "telefono"),
            "cumpleanos": birthday.isoformat() if birthday else None,
            "sexo": normalize_sex(self.field(row, "sexo")),
            "localidad": self.optional(row, "localidad"),
            "zonas_tratamiento": split_list(self.field(row, "zonas_tratamiento")),
            "precio_total": parse_number(self.field(row, "precio_total")),
            "metodo_pago_preferido": normalize_payment_method(self.field(row, "metodo_pago_preferido")),
            "observaciones": self.optional(row, "observaciones"),
            "consentimiento_firmado": parse_bool(self.field(row, "consentimiento_firmado")),
        }


class PaymentImporter(EntityImporter):
    entity = EntityType.PAYMENTS

    def label(self, row: RowData) -> str:
        return self.field(row, "cliente") or super().label(row)

    def prepare(self, row: RowData) -> dict[str, Any]:
        patient = resolve_patient(self.store, self.field(row, "cliente"), self.field(row, "telefono"))

        raw_amount = self.field(row, "monto")
        monto = parse_positive_number(raw_amount)
        if monto is None:
            raise RowImportError(f"Monto inválido '{raw_amount}'", "INVALID_AMOUNT")

        raw_method = self.field(row, "metodo_pago")
        metodo = normalize_payment_method(raw_method)
        if metodo is None:
            raise RowImportError(
                f"Método de pago inválido '{raw_method}' (use {', '.join(PAYMENT_METHODS)})",
                "INVALID_PAYMENT_METHOD",
            )

        paid_at = parse_datetime(self.field(row, "fecha_pago"))
        paid_at = self._aware(paid_at) if paid_at else datetime.now(UTC)

        return {
            "patient_id": patient["id"],
            "monto": monto,
            "metodo_pago": metodo,
            "fecha_pago": paid_at.isoformat(),
            "cajera_id": self.context.operator_id,
            "banco": self.optional(row, "banco"),
            "referencia": self.optional(row, "referencia"),
            "observaciones": self.optional(row, "observaciones"),
            "tipo_pago": self.field(row, "tipo_pago") or DEFAULT_PAYMENT_TYPE,
        }


class AppointmentImporter(EntityImporter):
    entity = EntityType.APPOINTMENTS

    def label(self, row: RowData) -> str:
        who = self.field(row, "cliente")
        what = self.field(row, "servicio")
        if who and what:
            return f"{who} - {what}"
        return who or super().label(row)

    def prepare(self, row: RowData) -> dict[str, Any]:
        patient = resolve_patient(self.store, self.field(row, "cliente"), self.field(row, "telefono"))
        service = resolve_service(self.store, self.field(row, "servicio"))

        raw_when = self.field(row, "fecha_hora")
        when = parse_datetime(raw_when)
        if when is None:
            raise RowImportError(f"Fecha y hora inválida '{raw_when}'", "INVALID_DATE")

        price = parse_positive_number(self.field(row, "precio_sesion"))
        if price is None:
            price = service.get("precio_base")

        return {
            "patient_id": patient["id"],
            "service_id": service["id"],
            "operadora_id": self.context.operator_id,
            "fecha_hora": self._aware(when).isoformat(),
            "duracion_minutos": service.get("duracion_minutos"),
            "numero_sesion": parse_positive_int(self.field(row, "numero_sesion")) or DEFAULT_SESSION_NUMBER,
            "status": self.field(row, "status").lower() or DEFAULT_APPOINTMENT_STATUS,
            "precio_sesion": price,
            "observaciones_caja": self.optional(row, "observaciones"),
        }


class ServiceImporter(EntityImporter):
    entity = EntityType.SERVICES

    def label(self, row: RowData) -> str:
        return self.field(row, "nombre") or super().label(row)

    def prepare(self, row: RowData) -> dict[str, Any]:
        nombre = self.field(row, "nombre")
        zona = self.field(row, "zona")
        if not nombre or not zona:
            raise RowImportError("Nombre y zona son requeridos", "MISSING_REQUIRED_FIELD")

        raw_price = self.field(row, "precio_base")
        precio = parse_positive_number(raw_price)
        if precio is None:
            raise RowImportError(f"Precio base inválido '{raw_price}'", "INVALID_AMOUNT")

        return {
            "nombre": nombre,
            "descripcion": self.optional(row, "descripcion"),
            "zona": zona,
            "precio_base": precio,
            "duracion_minutos": parse_positive_int(self.field(row, "duracion_minutos"))
            or DEFAULT_DURATION_MINUTES,
            "sesiones_recomendadas": parse_positive_int(self.field(row, "sesiones_recomendadas"))
            or DEFAULT_RECOMMENDED_SESSIONS,
            "tecnologia": self.field(row, "tecnologia") or self.context.default_technology,
            "is_active": True,
        }


_IMPORTERS: dict[EntityType, type[EntityImporter]] = {
    EntityType.PATIENTS: PatientImporter,
    EntityType.PAYMENTS: PaymentImporter,
    EntityType.APPOINTMENTS: AppointmentImporter,
    EntityType.SERVICES: ServiceImporter,
}


def build_importer(entity: EntityType | str, store: RecordStore, context: ImportContext) -> EntityImporter:
    spec = get_entity_spec(entity)
    return _IMPORTERS[spec.entity](store, context)
