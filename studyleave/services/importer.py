from __future__ import annotations

import logging
import secrets
import shutil
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.leaves import DatabaseError, fetch_existing_keys, insert_import_log, insert_leaves
from ..excel.archive import ArchiveError, Workbook, read_workbook
from ..excel.headers import (
    DataStartNotFoundError,
    MissingColumnsError,
    find_data_start,
    missing_required,
    resolve,
)
from ..excel.rows import decode_rows
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import ImportSettings
from ..models.diagnostics import ImportDiagnostics
from ..models.import_result import ImportResult, SheetSelection
from ..models.leave_record import LeaveRecordDraft
from .progress import ProgressTracker
from .reconcile import Reconciler

"""Import orchestration: one workbook -> one atomic study_leaves commit.

1. read the package, decode every worksheet
2. resolve headers per worksheet; keep the ones with all required columns
   and a data row (none -> MissingColumnsError / DataStartNotFoundError)
3. snapshot existing dedup keys, reconcile all kept worksheets together
4. BEGIN / insert / COMMIT; any failure -> ROLLBACK + DatabaseError
5. best effort audit: import_logs row and the JSON Lines error log

cursor=None runs everything except the database steps (dry run).
"""

__all__ = [
    "ProcessingError",
    "import_workbook",
    "select_worksheets",
    "store_upload",
]

logger = logging.getLogger(__name__)

WORKBOOK_SHEET = "<WORKBOOK>"
ALLOWED_SUFFIX = ".xlsx"

_ERROR_TYPES: dict[type[Exception], str] = {
    ArchiveError: "ARCHIVE_ERROR",
    MissingColumnsError: "MISSING_COLUMNS",
    DataStartNotFoundError: "DATA_START_NOT_FOUND",
    DatabaseError: "DATABASE_ERROR",
}


class ProcessingError(Exception):
    """Import-level failure that is not one of the more specific signals."""


def store_upload(path: Path, upload_directory: Path | str) -> Path:
    """Copy an accepted upload under a random name; returns the stored path."""
    if path.suffix.lower() != ALLOWED_SUFFIX:
        raise ProcessingError(f"Only {ALLOWED_SUFFIX} is allowed: {path.name}")
    directory = Path(upload_directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"{secrets.token_hex(16)}{ALLOWED_SUFFIX}"
        shutil.copyfile(path, target)
    except OSError as e:
        raise ProcessingError(f"Failed to store upload: {e}") from e
    return target


def select_worksheets(workbook: Workbook, settings: ImportSettings) -> list[SheetSelection]:
    """Decode and header-resolve every non-empty worksheet, in workbook order."""
    selections: list[SheetSelection] = []
    with ProgressTracker(len(workbook.worksheets)) as progress:
        for part in workbook.worksheets:
            progress.start(part.title)
            rows = decode_rows(part.xml, workbook.shared_strings)
            progress.finish(rows=len(rows))
            if not rows:
                logger.debug("sheet=%s has no rows", part.title)
                continue

            header_map = resolve(rows, settings.header_scan_rows)
            missing = missing_required(header_map, settings.required_fields)
            data_start = None
            if not missing:
                try:
                    data_start = find_data_start(rows, header_map, settings.data_start_scan_rows)
                except DataStartNotFoundError:
                    logger.debug("sheet=%s has headers but no data row", part.title)
            selections.append(
                SheetSelection(
                    title=part.title,
                    part_name=part.part_name,
                    rows=rows,
                    header_map=header_map,
                    missing=missing,
                    data_start=data_start,
                )
            )
            logger.debug(
                "sheet=%s rows=%d mapped=%s missing=%s data_start=%s",
                part.title,
                len(rows),
                sorted(header_map),
                missing,
                data_start,
            )
    return selections


def _qualifying_sheets(
    selections: Sequence[SheetSelection],
    source_name: str,
    error_log: ErrorLogBuffer,
) -> list[tuple[SheetSelection, int]]:
    qualifying = [
        (s, s.data_start) for s in selections if s.data_start is not None and not s.missing
    ]
    for sheet in selections:
        if sheet.qualifies:
            continue
        reason = (
            f"missing columns {sheet.missing}" if sheet.missing else "no data row found"
        )
        if qualifying:
            logger.info("sheet=%s skipped: %s", sheet.title, reason)
        error_log.append(ErrorRecord.create(source_name, sheet.title, -1, "SHEET_SKIPPED", reason))

    if qualifying:
        return qualifying

    with_missing = [s for s in selections if s.missing]
    if with_missing:
        # min() keeps the first sheet on ties
        best = min(with_missing, key=lambda s: len(s.missing))
        raise MissingColumnsError(best.missing, sheet=best.title)
    raise DataStartNotFoundError("Unable to find data rows")


def _commit(cursor: Any, drafts: Sequence[LeaveRecordDraft]) -> None:
    """Insert every draft in one transaction, or nothing."""
    try:
        cursor.execute("BEGIN")
        insert_leaves(cursor, drafts)
        cursor.execute("COMMIT")
    except Exception as e:
        try:
            cursor.execute("ROLLBACK")
        except Exception:
            logger.debug("rollback failed", exc_info=True)
        if isinstance(e, DatabaseError):
            raise
        raise DatabaseError(f"commit failed: {e}") from e


def _audit_rows(
    error_log: ErrorLogBuffer,
    source_name: str,
    diagnostics: ImportDiagnostics,
) -> None:
    for entry in diagnostics.skipped_rows:
        error_type = "DUPLICATE_ROW" if entry["reason"] == "duplicate" else "ROW_SKIPPED"
        detail = ", ".join(
            f"{k}={v}" for k, v in entry.items() if k not in ("row", "sheet") and v not in (None, "")
        )
        error_log.append(
            ErrorRecord.create(
                source_name,
                entry.get("sheet", WORKBOOK_SHEET),
                entry["row"],
                error_type,
                detail,
            )
        )


def _record_import_log(
    cursor: Any,
    source_name: str,
    stored_path: str | None,
    diagnostics: ImportDiagnostics,
) -> None:
    try:
        insert_import_log(
            cursor,
            original_name=source_name,
            stored_path=stored_path,
            inserted=diagnostics.inserted,
            skipped=diagnostics.skipped,
            duplicate_count=diagnostics.duplicate_count,
        )
    except Exception as e:
        logger.warning("import log not written: %s", e)


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning("error log flush failed: %s", e)
        return
    if path is not None:
        logger.debug("error log written to %s", path)


def import_workbook(
    path: Path | str,
    cursor: Any = None,
    *,
    settings: ImportSettings | None = None,
    original_name: str | None = None,
    stored_path: str | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Import one roster workbook.

    Args:
        path: .xlsx package to read
        cursor: psycopg2 cursor (autocommit connection; this function issues
            BEGIN/COMMIT itself). None = dry run, nothing is read or written.
        settings: scan limits, required fields, report bounds
        original_name: name shown in results and logs (defaults to path name)
        stored_path: where the upload was kept, recorded in import_logs
        error_log: audit buffer; a fresh one is used when omitted

    Returns:
        ImportResult with diagnostics of the committed import

    Raises:
        ArchiveError: package unreadable
        ProcessingError: no worksheet has any rows
        MissingColumnsError: no worksheet maps every required field
        DataStartNotFoundError: columns found but no data row anywhere
        DatabaseError: reading existing keys or the commit failed (rolled back)
    """
    settings = settings or ImportSettings()
    path = Path(path)
    source_name = original_name or path.name
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    start_time = datetime.now(UTC)

    try:
        workbook = read_workbook(path)
        selections = select_worksheets(workbook, settings)
        if not selections:
            raise ProcessingError("Excel file is empty")
        sheets = _qualifying_sheets(selections, source_name, error_log)

        existing_keys = fetch_existing_keys(cursor) if cursor is not None else set()
        reconciler = Reconciler(
            existing_keys,
            max_skipped_reports=settings.max_skipped_reports,
            max_duplicate_examples=settings.max_duplicate_examples,
        )
        for sheet, data_start in sheets:
            reconciler.reconcile_sheet(sheet.rows, sheet.header_map, data_start, sheet=sheet.title)

        if cursor is not None:
            _commit(cursor, reconciler.drafts)
    except (ArchiveError, ProcessingError, MissingColumnsError, DataStartNotFoundError, DatabaseError) as e:
        error_type = _ERROR_TYPES.get(type(e), "PROCESSING_ERROR")
        logger.error("import of %s failed: %s", source_name, e)
        error_log.append(ErrorRecord.create(source_name, WORKBOOK_SHEET, -1, error_type, str(e)))
        _flush(error_log)
        raise

    diagnostics = reconciler.diagnostics
    _audit_rows(error_log, source_name, diagnostics)
    if cursor is not None:
        _record_import_log(cursor, source_name, stored_path, diagnostics)
    _flush(error_log)

    end_time = datetime.now(UTC)
    logger.info(
        "imported %s sheets=%s inserted=%d skipped=%d duplicates=%d",
        source_name,
        [s.title for s, _ in sheets],
        diagnostics.inserted,
        diagnostics.skipped,
        diagnostics.duplicate_count,
    )
    return ImportResult(
        source_name=source_name,
        sheets=[s.title for s, _ in sheets],
        diagnostics=diagnostics,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        dry_run=cursor is None,
    )
