from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from clinic_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from clinic_import.db.memory import InMemoryRecordStore
from clinic_import.db.postgres import connect_store
from clinic_import.db.store import RecordStore, StoreError
from clinic_import.logging.init import log_summary, set_debug, setup_logging
from clinic_import.models.config_models import ImportConfig, ImportContext
from clinic_import.models.entities import EntityType
from clinic_import.models.row_data import HEADER_OFFSET
from clinic_import.services.progress import TerminalProgressListener
from clinic_import.services.session import ImportBlockedError, ImportSession
from clinic_import.services.summary import render_summary_line
from clinic_import.staging.grid import StagingGrid
from clinic_import.staging.parser import ParseError, parse_csv_text, read_csv_file

"""CLI entrypoint.

Flow:
- load .env (override) and config/import.yml
- parse the CSV into a staging grid and print validation findings
- refuse to import while error-severity findings remain
- import row by row against the live store (psycopg2) or, with --dry-run /
  DISABLE_DB_CONNECT=1, against an in-memory store; a failed connection is
  fatal
- print the SUMMARY line

Exit codes: 0 every row imported, 2 some rows failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over the existing environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Clinic CSV importer (patients, payments, appointments, services)")
    p.add_argument("entity", choices=[e.value for e in EntityType], help="Entity type of the CSV file")
    p.add_argument("file", type=Path, help="CSV file to import")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--operator", default=None, help="Operator id stamped on payments/appointments")
    p.add_argument("--dry-run", action="store_true", help="Import into an in-memory store")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, findings & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(entity: str, path: Path) -> int:
    try:
        parsed = parse_csv_text(read_csv_file(path), entity)
    except ParseError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    grid = StagingGrid(parsed.entity)
    findings = grid.load(parsed.headers, parsed.rows)
    print(f"FILE: {path.name} entity={entity} rows={grid.row_count} cols={grid.headers}")
    missing = grid.missing_required_columns()
    if missing:
        print(f"  missing_required_columns={missing}")
    print(f"  findings={len(findings)} blocking={len(grid.blocking_findings)}")
    print(grid.to_dataframe().head(5).to_string(index=False))
    return 0


def _run_session(
    logger: logging.Logger,
    entity: str,
    path: Path,
    store: RecordStore,
    context: ImportContext,
    cfg: ImportConfig,
) -> int:
    session = ImportSession(
        entity,
        store,
        context,
        listeners=[TerminalProgressListener()],
        logs_dir=cfg.error_log_dir,
    )
    try:
        findings = session.load_text(read_csv_file(path))
    except ParseError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL

    for f in findings:
        line = f"row={f.row_index + HEADER_OFFSET} column={f.column} {f.message}"
        if f.is_blocking:
            logger.error(line)
        else:
            logger.warning(line)

    try:
        result = session.start_import()
    except ImportBlockedError as e:
        logger.error(f"import blocked: {e}")
        return EXIT_FATAL

    for message in result.error_messages:
        logger.error(message)

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS_ALL if result.all_succeeded else EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # solo se lee sys.argv cuando argv es None (los tests llaman main([...]))
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.entity, args.file)

    context = ImportContext.from_config(cfg, operator_id=args.operator)
    if context.operator_id is None and args.entity in (EntityType.PAYMENTS.value, EntityType.APPOINTMENTS.value):
        logger.warning("no operator id configured; cajera_id/operadora_id will be empty")

    logger.info(f"Importing {args.entity} from: {args.file}")

    if args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("store disabled -> mock mode")
        code = _run_session(logger, args.entity, args.file, InMemoryRecordStore(), context, cfg)
        logger.info("mode=mock")
        return code

    try:
        with connect_store(cfg.store) as store:
            code = _run_session(logger, args.entity, args.file, store, context, cfg)
            logger.info("mode=live")
            return code
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
