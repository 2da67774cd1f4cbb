from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Entity types accepted by the importer and their header conventions.

Each entity carries:
- the target table in the record store
- the set of header names that must hold a value (staging validation)
- an ordered alias table: canonical field -> candidate headers, tried in order

The alias table replaces ad hoc ``row['cliente'] or row['paciente']`` lookups;
the first candidate holding a non-blank value wins.
"""

__all__ = [
    "EntityType",
    "EntitySpec",
    "ENTITY_SPECS",
    "get_entity_spec",
]


class EntityType(Enum):
    """Importable entity types (one tab per type in the import screen)."""
    PATIENTS = "patients"
    PAYMENTS = "payments"
    APPOINTMENTS = "appointments"
    SERVICES = "services"


@dataclass(frozen=True)
class EntitySpec:
    entity: EntityType
    table: str
    required_fields: frozenset[str]
    aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    label: str = ""  # etiqueta para mensajes

    def candidates(self, field_name: str) -> tuple[str, ...]:
        """Header names tried for ``field_name``, in priority order."""
        return self.aliases.get(field_name, (field_name,))

    def missing_required_columns(self, headers: list[str]) -> list[str]:
        """Required fields with no matching header (direct or alias)."""
        present = set(headers)
        missing = []
        for name in sorted(self.required_fields):
            if not any(c in present for c in self.candidates(name)):
                missing.append(name)
        return missing


_PATIENT_NAME = ("cliente", "paciente", "nombre_completo")

ENTITY_SPECS: dict[EntityType, EntitySpec] = {
    EntityType.PATIENTS: EntitySpec(
        entity=EntityType.PATIENTS,
        table="patients",
        required_fields=frozenset({"nombre_completo"}),
        aliases={
            "nombre_completo": ("nombre_completo", "nombre"),
            "cumpleanos": ("cumpleanos", "fecha_nacimiento"),
            "zonas_tratamiento": ("zonas_tratamiento", "zonas"),
        },
        label="Pacientes",
    ),
    EntityType.PAYMENTS: EntitySpec(
        entity=EntityType.PAYMENTS,
        table="payments",
        required_fields=frozenset({"cliente", "monto", "metodo_pago"}),
        aliases={
            "cliente": _PATIENT_NAME,
            "monto": ("monto", "cantidad"),
            "metodo_pago": ("metodo_pago", "metodo"),
            "fecha_pago": ("fecha_pago", "fecha"),
        },
        label="Pagos",
    ),
    EntityType.APPOINTMENTS: EntitySpec(
        entity=EntityType.APPOINTMENTS,
        table="appointments",
        required_fields=frozenset({"cliente", "servicio", "fecha_hora"}),
        aliases={
            "cliente": _PATIENT_NAME,
            "servicio": ("servicio", "tratamiento"),
            "fecha_hora": ("fecha_hora", "fecha"),
            "numero_sesion": ("numero_sesion", "sesion"),
            "status": ("status", "estado"),
        },
        label="Citas",
    ),
    EntityType.SERVICES: EntitySpec(
        entity=EntityType.SERVICES,
        table="services",
        required_fields=frozenset({"nombre", "zona", "precio_base"}),
        aliases={
            "precio_base": ("precio_base", "precio"),
            "duracion_minutos": ("duracion_minutos", "duracion"),
            "sesiones_recomendadas": ("sesiones_recomendadas", "sesiones"),
        },
        label="Servicios",
    ),
}


def get_entity_spec(entity: EntityType | str) -> EntitySpec:
    """Look up the spec for an entity; accepts the enum or its string value.

    Raises:
        ValueError: if ``entity`` is not a known entity type
    """
    if not isinstance(entity, EntityType):
        entity = EntityType(str(entity).strip().lower())
    return ENTITY_SPECS[entity]
