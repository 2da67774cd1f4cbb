from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the clinic CSV import pipeline.

These are the typed shapes produced by clinic_import.config.loader and threaded
explicitly into the import executor. Nothing in the pipeline reads ambient
state (current user, global client) directly.
"""

DEFAULT_PACE_SECONDS = 0.05
DEFAULT_TECHNOLOGY = "Sopranoice"


@dataclass(frozen=True)
class StoreConfig:
    """Record store connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object loaded from config/import.yml."""
    store: StoreConfig
    operator_id: str | None = None  # cajera / operadora que firma los registros
    pace_seconds: float = DEFAULT_PACE_SECONDS  # pausa entre filas
    default_technology: str = DEFAULT_TECHNOLOGY
    timezone: str = "UTC"
    error_log_dir: str = "./logs"


@dataclass(frozen=True)
class ImportContext:
    """Explicit per-run context handed to the import executor.

    Carries the operator identity used to stamp ``cajera_id`` on payments and
    ``operadora_id`` on appointments, plus pacing and catalog defaults.
    """
    operator_id: str | None = None
    pace_seconds: float = 0.0
    default_technology: str = DEFAULT_TECHNOLOGY
    timezone: str = "UTC"

    @classmethod
    def from_config(cls, config: ImportConfig, operator_id: str | None = None) -> ImportContext:
        return cls(
            operator_id=operator_id if operator_id is not None else config.operator_id,
            pace_seconds=config.pace_seconds,
            default_technology=config.default_technology,
            timezone=config.timezone,
        )
