from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from ..db.store import RecordStore
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportContext
from ..models.entities import EntitySpec, EntityType, get_entity_spec
from ..models.import_result import ImportResult
from ..models.validation import CellCheck, ValidationFinding
from ..staging.grid import StagingGrid
from ..staging.parser import EncodingError, ParseError, parse_csv_text, read_csv_file
from .executor import ImportExecutor
from .progress import ImportListener, ProgressReporter

logger = logging.getLogger(__name__)

"""Import session: one pass of upload -> edit -> importing -> completed.

The session owns the staging grid, the progress reporter and the last result.
Transitions are linear; ``reset`` is the only way back and always lands in
UPLOAD with the grid, log and result discarded. Grid edits are accepted only
in EDIT, and ``start_import`` refuses while blocking findings remain.
"""

__all__ = [
    "SessionState",
    "SessionStateError",
    "ImportBlockedError",
    "NothingToImportError",
    "ImportSession",
]


class SessionState(Enum):
    UPLOAD = "upload"
    EDIT = "edit"
    IMPORTING = "importing"
    COMPLETED = "completed"


class SessionStateError(Exception):
    """Raised for an operation not allowed in the current state."""


class ImportBlockedError(Exception):
    """Raised when import is requested while error-severity findings exist."""

    def __init__(self, findings: list[ValidationFinding]) -> None:
        super().__init__(f"{len(findings)} blocking validation error(s) must be fixed before importing")
        self.findings = findings


class NothingToImportError(Exception):
    """Raised when import is requested on a grid with no rows left."""


class ImportSession:
    def __init__(
        self,
        entity: EntityType | str,
        store: RecordStore,
        context: ImportContext,
        listeners: Iterable[ImportListener] = (),
        logs_dir: Path | str | None = None,
    ) -> None:
        self.spec: EntitySpec = get_entity_spec(entity)
        self.store = store
        self.context = context
        self.reporter = ProgressReporter()
        self.listeners = [self.reporter, *listeners]
        self.logs_dir = logs_dir
        self.grid = StagingGrid(self.spec)
        self.state = SessionState.UPLOAD
        self.result: ImportResult | None = None
        self.parse_error: str | None = None

    @property
    def entity(self) -> str:
        return self.spec.entity.value

    @property
    def findings(self) -> list[ValidationFinding]:
        return self.grid.findings

    @property
    def can_start_import(self) -> bool:
        return self.state is SessionState.EDIT and not self.grid.is_empty and not self.grid.has_blocking_errors

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(f"operation not allowed in state '{self.state.value}' (expected {allowed})")

    # upload -> edit

    def load_text(self, text: str) -> list[ValidationFinding]:
        """Parse file text into the grid.

        Raises:
            ParseError: structural file error; the grid stays empty and the
                session stays in UPLOAD
        """
        self._require(SessionState.UPLOAD)
        try:
            parsed = parse_csv_text(text, self.entity)
        except ParseError as e:
            self.parse_error = str(e)
            self.grid.clear()
            logger.warning("file rejected entity=%s: %s", self.entity, e)
            raise
        self.parse_error = None
        findings = self.grid.load(parsed.headers, parsed.rows)
        missing = self.grid.missing_required_columns()
        if missing:
            logger.warning("entity=%s missing required columns: %s", self.entity, missing)
        self.state = SessionState.EDIT
        logger.info(
            "staged entity=%s rows=%d findings=%d blocking=%d",
            self.entity,
            self.grid.row_count,
            len(findings),
            len(self.grid.blocking_findings),
        )
        return findings

    def load_file(self, path: Path | str) -> list[ValidationFinding]:
        self._require(SessionState.UPLOAD)
        try:
            text = read_csv_file(path)
        except EncodingError as e:
            self.parse_error = str(e)
            logger.warning("file rejected entity=%s: %s", self.entity, e)
            raise
        return self.load_text(text)

    # edit

    def edit_cell(self, row: int, column: int | str, value: str) -> CellCheck:
        self._require(SessionState.EDIT)
        return self.grid.edit_cell(row, column, value)

    def add_row(self) -> int:
        self._require(SessionState.EDIT)
        return self.grid.add_row()

    def delete_row(self, row: int) -> None:
        self._require(SessionState.EDIT)
        self.grid.delete_row(row)

    def reset_all(self) -> None:
        self._require(SessionState.EDIT)
        self.grid.reset_all()

    # edit -> importing -> completed

    def start_import(self) -> ImportResult:
        """Run the import over the current grid snapshot.

        Raises:
            SessionStateError: not in EDIT
            NothingToImportError: every row was deleted
            ImportBlockedError: error-severity findings remain
        """
        self._require(SessionState.EDIT)
        if self.grid.is_empty:
            raise NothingToImportError("no rows to import")
        self.grid.revalidate()
        blocking = self.grid.blocking_findings
        if blocking:
            raise ImportBlockedError(blocking)

        rows = self.grid.to_rows()
        self.state = SessionState.IMPORTING
        executor = ImportExecutor(
            self.store,
            self.context,
            listeners=self.listeners,
            error_log=ErrorLogBuffer(self.logs_dir),
        )
        self.result = executor.run(self.spec.entity, rows)
        self.state = SessionState.COMPLETED
        return self.result

    # any -> upload

    def reset(self) -> None:
        """New import / cancel: discard grid, log and result."""
        self.grid.clear()
        self.reporter.clear()
        self.result = None
        self.parse_error = None
        self.state = SessionState.UPLOAD
