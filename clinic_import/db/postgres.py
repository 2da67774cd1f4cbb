from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.extras
from psycopg2 import sql
from psycopg2.extras import execute_values

from clinic_import.models.config_models import StoreConfig

from .store import Filter, StoreError, StoreFailure, StoreResponse

"""psycopg2-backed RecordStore.

The hosted backend is PostgreSQL underneath, so the importer talks to it over a
plain DSN. Each call is its own transaction: committed on success, rolled back
on any psycopg2 error, which is returned as a StoreFailure rather than raised.
Rows come back as dicts (RealDictCursor) so callers see the same shape the
hosted client returns.
"""

__all__ = [
    "PostgresRecordStore",
    "build_dsn",
    "connect_store",
]

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (psycopg2.OperationalError, psycopg2.InterfaceError)


def build_dsn(cfg: StoreConfig) -> str:
    """Resolve the connection string.

    Precedence:
        1. DATABASE_URL / PGDSN environment variables (whole DSN)
        2. StoreConfig.dsn from config/import.yml
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling
           back to the matching StoreConfig field
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", cfg.host or "localhost")
    port = os.getenv("PGPORT", str(cfg.port) if cfg.port else "5432")
    user = os.getenv("PGUSER", cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", cfg.password or "")
    database = os.getenv("PGDATABASE", cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _failure_from(e: psycopg2.Error) -> StoreFailure:
    code = getattr(e, "pgcode", None)
    if code is None and isinstance(e, _TRANSPORT_ERRORS):
        code = "NETWORK_ERROR"
    message = (getattr(e, "pgerror", None) or str(e)).strip()
    diag = getattr(e, "diag", None)
    details = getattr(diag, "message_detail", None) if diag is not None else None
    return StoreFailure(message=message, code=code, details=details)


def _where(filters: Iterable[Filter]) -> tuple[sql.Composable, list[Any]]:
    clauses = []
    params: list[Any] = []
    for f in filters:
        op = sql.SQL("=") if f.op == "eq" else sql.SQL("ILIKE")
        clauses.append(sql.SQL("{} {} %s").format(sql.Identifier(f.column), op))
        params.append(f.value)
    if not clauses:
        return sql.SQL(""), params
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), params


class PostgresRecordStore:
    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def _run(self, query: sql.Composable, params: Sequence[Any] | None = None) -> StoreResponse:
        try:
            with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(r) for r in cur.fetchall()] if cur.description else []
            self.conn.commit()
            return StoreResponse(data=rows)
        except psycopg2.Error as e:
            self._rollback()
            logger.debug("store error: %s", e)
            return StoreResponse(error=_failure_from(e))

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except psycopg2.Error:  # pragma: no cover - connection already gone
            logger.debug("rollback failed", exc_info=True)

    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> StoreResponse:
        if not records:
            return StoreResponse(data=[])
        columns = list(records[0].keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES %s RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(",").join(sql.Identifier(c) for c in columns),
        )
        values = [[r.get(c) for c in columns] for r in records]
        try:
            with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                rows = execute_values(cur, query, values, fetch=True)
            self.conn.commit()
            return StoreResponse(data=[dict(r) for r in rows])
        except psycopg2.Error as e:
            self._rollback()
            logger.debug("insert into %s failed: %s", table, e)
            return StoreResponse(error=_failure_from(e))

    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        *,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> StoreResponse:
        where, params = _where(filters)
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table)) + where
        if order_by:
            query += sql.SQL(" ORDER BY {}").format(sql.Identifier(order_by))
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(int(limit))
        return self._run(query, params)

    def update(self, table: str, patch: dict[str, Any], filters: Iterable[Filter]) -> StoreResponse:
        if not patch:
            return StoreResponse(data=[])
        where, where_params = _where(filters)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(k)) for k in patch
        )
        query = (
            sql.SQL("UPDATE {} SET ").format(sql.Identifier(table))
            + assignments
            + where
            + sql.SQL(" RETURNING *")
        )
        return self._run(query, list(patch.values()) + where_params)


@contextmanager
def connect_store(cfg: StoreConfig) -> Iterator[PostgresRecordStore]:
    """Open a connection and yield a PostgresRecordStore, closing it on exit.

    Raises:
        StoreError: if the connection can not be established
    """
    try:
        conn = psycopg2.connect(build_dsn(cfg))
    except psycopg2.Error as e:
        raise StoreError(f"could not connect to store: {e}") from e
    conn.autocommit = False
    try:
        yield PostgresRecordStore(conn)
    finally:
        try:
            conn.close()
        except psycopg2.Error:  # pragma: no cover
            logger.debug("close failed", exc_info=True)
