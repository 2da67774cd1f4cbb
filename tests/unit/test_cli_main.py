from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from clinic_import.cli import main as cli_main
from clinic_import.db.store import StoreError


def _write_csv(temp_workdir: Path, name: str, text: str) -> Path:
    path = temp_workdir / "data" / name
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_patients_success(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "patients.csv", "nombre_completo,telefono\nLaura,5550000001\nPedro,5550000002\n")
    code = cli_main(["patients", str(csv)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY entity=patients total=2 success=2 failed=0" in out
    assert "INFO mode=mock" in out


def test_cli_missing_config(temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "patients.csv", "nombre_completo\nAna\n")
    code = cli_main(["patients", str(csv)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config: config file not found" in out


def test_cli_file_missing(write_config, temp_workdir: Path, no_db, capsys):
    code = cli_main(["services", str(temp_workdir / "data" / "nope.csv")])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR file not found:" in out


def test_cli_empty_file(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "empty.csv", "\n\n")
    code = cli_main(["services", str(csv)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR file: El archivo está vacío" in out


def test_cli_blocked_by_validation(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "services.csv", "nombre,zona,precio_base\nLáser,axilas,-5\n")
    code = cli_main(["services", str(csv)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR row=2 column=precio_base Debe ser un número mayor a 0" in out
    assert "ERROR import blocked:" in out
    assert "SUMMARY" not in out


def test_cli_warnings_do_not_block(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "patients.csv", "nombre_completo,telefono\nLaura,123\n")
    code = cli_main(["patients", str(csv)])
    out = capsys.readouterr().out
    assert code == 0
    assert "WARN row=2 column=telefono" in out


def test_cli_partial_failure_exit_code(write_config, temp_workdir: Path, no_db, capsys):
    # el almacén en memoria empieza vacío: ningún paciente existe
    csv = _write_csv(temp_workdir, "payments.csv", "cliente,monto,metodo_pago\nAna,100,efectivo\n")
    code = cli_main(["payments", str(csv)])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR Fila 2: No se encontró el paciente 'Ana'" in out
    assert "SUMMARY entity=payments total=1 success=0 failed=1" in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_unknown_entity_rejected_by_argparse(write_config, temp_workdir: Path, no_db):
    with pytest.raises(SystemExit) as e:
        cli_main(["invoices", "x.csv"])
    assert e.value.code == 2


def test_cli_debug_mode(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "services.csv", "nombre,zona,precio_base\nLáser,axilas,800\n")
    code = cli_main(["services", str(csv), "--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG store disabled -> mock mode" in out


def test_cli_inspect_data(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "services.csv", "nombre,zona,precio_base\nLáser,axilas,-5\n")
    code = cli_main(["services", str(csv), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: services.csv entity=services rows=1" in out
    assert "findings=1 blocking=1" in out
    assert "Láser" in out
    assert "SUMMARY" not in out


def test_cli_inspect_reports_missing_columns(write_config, temp_workdir: Path, no_db, capsys):
    csv = _write_csv(temp_workdir, "payments.csv", "cliente,monto\nAna,100\n")
    cli_main(["payments", str(csv), "--inspect-data"])
    out = capsys.readouterr().out
    assert "missing_required_columns=['metodo_pago']" in out


def test_cli_store_connection_failure_is_fatal(write_config, temp_workdir: Path, monkeypatch, capsys):
    """Rows are never reported as imported when the store is unreachable."""
    from clinic_import.logging.init import reset_logging

    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    reset_logging()
    csv = _write_csv(temp_workdir, "services.csv", "nombre,zona,precio_base\nLáser,axilas,800\n")
    with patch("clinic_import.cli.__main__.connect_store", side_effect=StoreError("refused")):
        code = cli_main(["services", str(csv)])
    out = capsys.readouterr().out
    reset_logging()
    assert code == 1
    assert "ERROR store: refused" in out
    assert "SUMMARY" not in out
    assert "mode=mock" not in out


def test_cli_dry_run_skips_connection(write_config, temp_workdir: Path, monkeypatch, capsys):
    from clinic_import.logging.init import reset_logging

    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    reset_logging()
    csv = _write_csv(temp_workdir, "services.csv", "nombre,zona,precio_base\nLáser,axilas,800\n")
    with patch("clinic_import.cli.__main__.connect_store") as connect:
        code = cli_main(["services", str(csv), "--dry-run"])
    reset_logging()
    assert code == 0
    connect.assert_not_called()


def test_cli_latin1_file_is_fatal(write_config, temp_workdir: Path, no_db, capsys):
    path = temp_workdir / "data" / "patients.csv"
    path.write_bytes("nombre_completo\nJosé Núñez\n".encode("latin-1"))
    code = cli_main(["patients", str(path)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR file: El archivo no está en UTF-8" in out
    assert "SUMMARY" not in out


def test_cli_inspect_latin1_file(write_config, temp_workdir: Path, no_db, capsys):
    path = temp_workdir / "data" / "patients.csv"
    path.write_bytes("nombre_completo\nJosé Núñez\n".encode("latin-1"))
    code = cli_main(["patients", str(path), "--inspect-data"])
    assert code == 1
    assert "inspect: El archivo no está en UTF-8" in capsys.readouterr().out
