from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for import runs.

Format:
    SUMMARY entity={entity} total={total} success={success} failed={failed} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # evitar notación científica
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for a completed run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2025, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     entity="patients", success_count=9, error_messages=("Fila 3: x",),
        ...     total_count=10, start_time=start, end_time=end,
        ... )
        >>> render_summary_line(result)
        'SUMMARY entity=patients total=10 success=9 failed=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY entity={result.entity} "
        f"total={result.total_count} "
        f"success={result.success_count} "
        f"failed={result.error_count} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
