# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from clinic_import.db.memory import InMemoryRecordStore
from clinic_import.logging.init import reset_logging
from clinic_import.models.config_models import ImportContext


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """store:
  host: localhost
  port: 5432
  user: clinic
  password: secret
  database: clinic
operator_id: op-001
pace_seconds: 0
default_technology: Sopranoice
timezone: America/Mexico_City
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    monkeypatch.delenv("CLINIC_OPERATOR_ID", raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def context() -> ImportContext:
    return ImportContext(operator_id="op-001", pace_seconds=0.0, timezone="UTC")


@pytest.fixture()
def clinic_store() -> InMemoryRecordStore:
    """Store seeded with two patients and three services (one inactive)."""
    return InMemoryRecordStore(
        tables={
            "patients": [
                {
                    "id": "p-1",
                    "nombre_completo": "María García López",
                    "telefono": "5551234567",
                    "created_at": "2025-01-01T10:00:00+00:00",
                },
                {
                    "id": "p-2",
                    "nombre_completo": "Ana Pérez",
                    "telefono": "9841234567",
                    "created_at": "2025-01-02T10:00:00+00:00",
                },
            ],
            "services": [
                {
                    "id": "s-1",
                    "nombre": "Depilación Láser Axilas",
                    "zona": "axilas",
                    "precio_base": 800.0,
                    "duracion_minutos": 30,
                    "is_active": True,
                    "created_at": "2025-01-01T09:00:00+00:00",
                },
                {
                    "id": "s-2",
                    "nombre": "Depilación Láser Piernas",
                    "zona": "piernas",
                    "precio_base": 1500.0,
                    "duracion_minutos": 60,
                    "is_active": True,
                    "created_at": "2025-01-01T09:05:00+00:00",
                },
                {
                    "id": "s-3",
                    "nombre": "Depilación Facial",
                    "zona": "rostro",
                    "precio_base": 600.0,
                    "is_active": False,
                    "created_at": "2025-01-01T09:10:00+00:00",
                },
            ],
        }
    )
