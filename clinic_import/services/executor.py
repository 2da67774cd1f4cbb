from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from ..db.errors import describe_store_error, error_type_for
from ..db.store import RecordStore
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import ImportContext
from ..models.entities import EntityType, get_entity_spec
from ..models.import_result import ImportResult, ResultAccumulator, RowOutcome
from ..models.row_data import RowData
from .importers import EntityImporter, build_importer
from .progress import ImportListener
from .resolution import RowImportError

logger = logging.getLogger(__name__)

"""Import executor: row-by-row insert of a staged grid snapshot.

Rows are processed strictly in order, one store call at a time. Each row ends
in exactly one RowOutcome:

- rule violations and unresolved references -> error, no insert attempted
- store error on insert                      -> error with the store message
- anything unexpected                        -> error "Error inesperado"

A failing row never stops the run. If the loop itself breaks, the rows not
reached are recorded as errors so that
``success_count + len(error_messages) == total_count`` still holds.

Between rows the executor sleeps ``context.pace_seconds`` so that listeners
rendering a UI get a chance to repaint.
"""

__all__ = [
    "ImportExecutor",
    "run_import",
]


class ImportExecutor:
    def __init__(
        self,
        store: RecordStore,
        context: ImportContext,
        listeners: Iterable[ImportListener] = (),
        error_log: ErrorLogBuffer | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.context = context
        self.listeners = list(listeners)
        self.error_log = error_log
        self.sleep = sleep

    def run(self, entity: EntityType | str, rows: Sequence[RowData]) -> ImportResult:
        """Import ``rows`` as ``entity`` records and return the run summary."""
        spec = get_entity_spec(entity)
        importer = build_importer(spec.entity, self.store, self.context)
        total = len(rows)
        acc = ResultAccumulator(entity=spec.entity.value, total_count=total)

        logger.info("import start entity=%s rows=%d operator=%s", spec.entity.value, total, self.context.operator_id)
        self._notify("on_run_start", spec.entity.value, total)

        try:
            for index, row in enumerate(rows, start=1):
                label = importer.label(row)
                self._notify("on_row_start", index, total, row, label)

                outcome = self._process_row(importer, row)
                acc.add(outcome)
                if not outcome.success:
                    self._record_error(spec.entity.value, outcome)

                self._notify("on_row_result", index, total, outcome, label)

                if self.context.pace_seconds > 0 and index < total:
                    self.sleep(self.context.pace_seconds)
        except Exception as e:
            logger.error("import run failed entity=%s after %d/%d rows: %s", spec.entity.value, acc.processed_count, total, e)
            if self.error_log is not None:
                self.error_log.append(ErrorRecord.run_failure(spec.entity.value, e))
            for row in rows[acc.processed_count:]:
                acc.add(
                    RowOutcome(
                        row_number=row.row_number,
                        success=False,
                        message=f"Fila {row.row_number}: No procesada, la importación se interrumpió ({e})",
                        error_type="RUN_ABORTED",
                    )
                )

        result = acc.build()
        logger.info(
            "import done entity=%s success=%d failed=%d total=%d",
            result.entity,
            result.success_count,
            result.error_count,
            result.total_count,
        )
        self._notify("on_run_complete", result)
        self._flush_error_log()
        return result

    def _process_row(self, importer: EntityImporter, row: RowData) -> RowOutcome:
        n = row.row_number
        try:
            record = importer.prepare(row)
            resp = self.store.insert(importer.table, [record])
            if resp.error is not None:
                raise RowImportError(describe_store_error(resp.error), error_type_for(resp.error))
        except RowImportError as e:
            logger.warning("row %d rejected: %s", n, e)
            return RowOutcome(row_number=n, success=False, message=f"Fila {n}: {e}", error_type=e.error_type)
        except Exception as e:
            logger.error("row %d unexpected error: %s", n, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            return RowOutcome(
                row_number=n,
                success=False,
                message=f"Fila {n}: Error inesperado ({e})",
                error_type="UNEXPECTED_ERROR",
            )

        inserted = resp.first or {}
        logger.debug("row %d inserted into %s id=%s", n, importer.table, inserted.get("id"))
        return RowOutcome(
            row_number=n,
            success=True,
            message=f"Fila {n}: {importer.label(row)} importado",
            record_id=inserted.get("id"),
        )

    def _record_error(self, entity: str, outcome: RowOutcome) -> None:
        if self.error_log is None:
            return
        self.error_log.append(ErrorRecord.from_outcome(entity, outcome))

    def _flush_error_log(self) -> None:
        if self.error_log is None:
            return
        try:
            path = self.error_log.flush()
        except OSError as e:
            # el log de errores no debe tumbar la importación
            logger.warning("could not write error log: %s", e)
            return
        if path is not None:
            logger.info("error log written: %s", path)

    def _notify(self, method: str, *args: object) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, method)(*args)
            except Exception:
                logger.warning("listener %s.%s failed", type(listener).__name__, method, exc_info=True)


def run_import(
    store: RecordStore,
    entity: EntityType | str,
    rows: Sequence[RowData],
    context: ImportContext,
    listeners: Iterable[ImportListener] = (),
    logs_dir: Path | str | None = None,
) -> ImportResult:
    """Convenience wrapper: one executor, one run, error log flushed to ``logs_dir``."""
    executor = ImportExecutor(store, context, listeners=listeners, error_log=ErrorLogBuffer(logs_dir))
    return executor.run(entity, rows)
