from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.leave_record import LEAVE_COLUMNS, DedupKey, LeaveRecordDraft
from .batch_insert import BatchInsertError, BatchMetrics, batch_insert

"""study_leaves / import_logs persistence (psycopg2 cursor based).

Functions here never open or close connections. Import commits are driven by
studyleave.services.importer; save_leave runs its own short transaction.
"""

__all__ = [
    "DatabaseError",
    "LEAVES_TABLE",
    "IMPORT_LOGS_TABLE",
    "fetch_existing_keys",
    "insert_leaves",
    "insert_import_log",
    "fetch_leaves",
    "fetch_recent_imports",
    "save_leave",
]

logger = logging.getLogger(__name__)

LEAVES_TABLE = "study_leaves"
IMPORT_LOGS_TABLE = "import_logs"
IMPORT_LOG_COLUMNS = ("original_name", "stored_path", "inserted", "skipped", "duplicate_count")


class DatabaseError(Exception):
    """Opaque persistence failure reported to the user as 'Database error'."""


def _rows_as_dicts(cursor: Any, columns: Sequence[str]) -> list[dict[str, Any]]:
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def fetch_existing_keys(cursor: Any) -> set[DedupKey]:
    """Snapshot of the DedupKeys already stored in study_leaves."""
    try:
        cursor.execute(f"SELECT cid, order_no, start_date, end_date FROM {LEAVES_TABLE}")
        return {DedupKey.from_record(tuple(row)) for row in cursor.fetchall()}
    except Exception as e:
        raise DatabaseError(f"failed reading existing leaves: {e}") from e


def _log_metrics(metrics: BatchMetrics) -> None:
    logger.debug(
        "inserted batch of %d into %s in %.3fs",
        metrics.batch_size,
        LEAVES_TABLE,
        metrics.elapsed_seconds,
    )


def insert_leaves(cursor: Any, drafts: Sequence[LeaveRecordDraft], page_size: int = 1000) -> int:
    """Insert drafts inside the caller's transaction; returns the row count."""
    try:
        result = batch_insert(
            cursor,
            table=LEAVES_TABLE,
            columns=LEAVE_COLUMNS,
            rows=[draft.as_row() for draft in drafts],
            page_size=page_size,
            metrics_callback=_log_metrics,
        )
    except BatchInsertError as e:
        raise DatabaseError(str(e)) from e
    return result.inserted_rows


def insert_import_log(
    cursor: Any,
    original_name: str,
    stored_path: str | None,
    inserted: int,
    skipped: int,
    duplicate_count: int,
) -> None:
    cols_sql = ",".join(IMPORT_LOG_COLUMNS)
    placeholders = ",".join(["%s"] * len(IMPORT_LOG_COLUMNS))
    cursor.execute(
        f"INSERT INTO {IMPORT_LOGS_TABLE} ({cols_sql}) VALUES ({placeholders})",
        (original_name, stored_path, inserted, skipped, duplicate_count),
    )


def fetch_leaves(cursor: Any) -> list[dict[str, Any]]:
    """All study leaves, newest first, as dicts keyed by column name."""
    columns = ("id", *LEAVE_COLUMNS)
    try:
        cursor.execute(f"SELECT {','.join(columns)} FROM {LEAVES_TABLE} ORDER BY id DESC")
        return _rows_as_dicts(cursor, columns)
    except Exception as e:
        raise DatabaseError(f"failed reading leaves: {e}") from e


def fetch_recent_imports(cursor: Any, limit: int = 5) -> list[dict[str, Any]]:
    columns = ("original_name", "stored_path", "inserted", "skipped", "created_at")
    try:
        cursor.execute(
            f"SELECT {','.join(columns)} FROM {IMPORT_LOGS_TABLE} ORDER BY created_at DESC LIMIT %s",
            (limit,),
        )
        return _rows_as_dicts(cursor, columns)
    except Exception as e:
        raise DatabaseError(f"failed reading import logs: {e}") from e


def save_leave(cursor: Any, draft: LeaveRecordDraft, leave_id: int | None = None) -> int:
    """Insert (leave_id=None) or update one leave in its own transaction.

    Returns:
        id of the inserted or updated row

    Raises:
        DatabaseError: on any failure; the transaction is rolled back
    """
    try:
        cursor.execute("BEGIN")
        if leave_id is None:
            result = batch_insert(
                cursor,
                table=LEAVES_TABLE,
                columns=LEAVE_COLUMNS,
                rows=[draft.as_row()],
                returning=True,
            )
            saved_id = int(result.returned_values[0][0]) if result.returned_values else 0
        else:
            assignments = ",".join(f'"{c}" = %s' for c in LEAVE_COLUMNS)
            cursor.execute(
                f"UPDATE {LEAVES_TABLE} SET {assignments} WHERE id = %s",
                (*draft.as_row(), leave_id),
            )
            if cursor.rowcount == 0:
                raise LookupError(f"leave {leave_id} not found")
            saved_id = leave_id
        cursor.execute("COMMIT")
    except Exception as e:
        try:
            cursor.execute("ROLLBACK")
        except Exception:
            logger.debug("rollback after failed save_leave also failed", exc_info=True)
        raise DatabaseError(str(e)) from e
    return saved_id
