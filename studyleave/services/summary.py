from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for a finished import.

Format:
SUMMARY file={name} sheets={n} inserted={i} skipped={s} duplicates={d}
elapsed_sec={e} mode={live|dry-run}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for ``result``.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from studyleave.models.diagnostics import ImportDiagnostics
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     source_name="roster.xlsx", sheets=["2566"],
        ...     diagnostics=ImportDiagnostics(inserted=3, skipped=1, duplicate_count=1),
        ...     start_time=t, end_time=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY file=roster.xlsx sheets=1 inserted=3 skipped=1 duplicates=1 elapsed_sec=2 mode=live'
    """
    diagnostics = result.diagnostics
    mode = "dry-run" if result.dry_run else "live"
    return (
        f"SUMMARY file={result.source_name} "
        f"sheets={len(result.sheets)} "
        f"inserted={diagnostics.inserted} "
        f"skipped={diagnostics.skipped} "
        f"duplicates={diagnostics.duplicate_count} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"mode={mode}"
    )
