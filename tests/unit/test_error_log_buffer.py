from __future__ import annotations
import json
from pathlib import Path
from clinic_import.logging.error_log import ErrorRecord, ErrorLogBuffer

KEYS = {"timestamp", "entity", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        entity="payments",
        row=10,
        error_type="PATIENT_NOT_FOUND",
        message="Fila 10: No se encontró el paciente 'Juan'",
    )
    data = json.loads(rec.to_json_line())
    assert data["entity"] == "payments"
    assert data["row"] == 10
    assert data["error_type"] == "PATIENT_NOT_FOUND"
    assert "timestamp" in data and data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_json_line_keeps_non_ascii():
    rec = ErrorRecord.create("patients", 2, "MISSING_REQUIRED_FIELD", "Nombre completo requerido ñ")
    assert "ñ" in rec.to_json_line()


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("services", 2, "INVALID_AMOUNT", "Precio base inválido"))
    buf.append(ErrorRecord.create("services", 3, "DUPLICATE_KEY", "Ya existe"))
    path = buf.flush()
    assert path.exists()
    assert path.parent.name == "logs"
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # después del flush el buffer queda vacío
    assert len(buf) == 0


def test_error_log_buffer_multiple_flushes(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "custom")
    buf.append(ErrorRecord.create("patients", 2, "X", "a"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("patients", 3, "X", "b"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_flush_empty_buffer_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "empty")
    assert buf.flush() is None
    assert not (temp_workdir / "empty").exists()


def test_record_from_failed_outcome():
    from clinic_import.models.import_result import RowOutcome

    outcome = RowOutcome(row_number=5, success=False, message="Fila 5: Monto inválido '0'", error_type="INVALID_AMOUNT")
    rec = ErrorRecord.from_outcome("payments", outcome)
    assert (rec.entity, rec.row, rec.error_type, rec.message) == (
        "payments",
        5,
        "INVALID_AMOUNT",
        "Fila 5: Monto inválido '0'",
    )
    assert ErrorRecord.run_failure("payments", RuntimeError("boom")).row == -1
