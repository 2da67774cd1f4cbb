"""Domain models for the clinic CSV import pipeline.

This package contains the model classes shared by the staging grid, the
validators and the import executor.
"""

from .config_models import ImportConfig, ImportContext, StoreConfig
from .entities import ENTITY_SPECS, EntitySpec, EntityType, get_entity_spec
from .import_result import ImportProgress, ImportResult, ProgressStatus, RowOutcome
from .row_data import RowData
from .staging import StagingCell, StagingRow
from .validation import CellCheck, Severity, ValidationFinding

__all__ = [
    # Configuration models
    "ImportConfig",
    "ImportContext",
    "StoreConfig",
    # Entities
    "ENTITY_SPECS",
    "EntitySpec",
    "EntityType",
    "get_entity_spec",
    # Staging models
    "RowData",
    "StagingCell",
    "StagingRow",
    "CellCheck",
    "Severity",
    "ValidationFinding",
    # Run results
    "ImportProgress",
    "ImportResult",
    "ProgressStatus",
    "RowOutcome",
]
