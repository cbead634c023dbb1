# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pytest

from studyleave.models.leave_record import LEAVE_COLUMNS
from tests.helpers import ROSTER_HEADER, ROSTER_TITLE, make_excel_file, roster_row


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_directory: ./uploads
header_scan_rows: 30
data_start_scan_rows: 40
required_fields: [cid, full_name, position_level, start_date, end_date]
max_skipped_reports: 200
max_duplicate_examples: 20
due_window_days: 90
timezone: UTC
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook(temp_workdir: Path):
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel_file(temp_workdir / "data", name, sheets)
    return _make


@pytest.fixture()
def roster_workbook(make_workbook) -> Path:
    """Single-sheet roster: title row, header row, three people."""
    return make_workbook(
        "roster.xlsx",
        {
            "2566": [
                ROSTER_TITLE,
                ROSTER_HEADER,
                roster_row(1, "1100100000011", "นางสาวสมหญิง ใจดี"),
                roster_row(2, "1100100000022", "นายสมชาย รักเรียน", order_no="สธ 0201/124"),
                roster_row(3, "1100100000033", "นางมาลี ศรีสุข", start="1 ต.ค. 2566", end="30 ก.ย. 2567"),
            ]
        },
    )


_COL = {name: i for i, name in enumerate(LEAVE_COLUMNS)}


class FakeCursor:
    """In-memory stand-in for a psycopg2 cursor on an autocommit connection.

    study_leaves rows are tuples in LEAVE_COLUMNS order. Rows inserted after
    BEGIN stay staged until COMMIT; ROLLBACK drops them.
    """

    def __init__(self) -> None:
        self.committed: list[tuple[Any, ...]] = []
        self.staged: list[tuple[Any, ...]] = []
        self.import_logs: list[tuple[Any, ...]] = []
        self.statements: list[str] = []
        self.in_transaction = False
        self.fail_on_insert = False
        self.fail_on_select = False
        self.fail_on_import_log = False
        self.rowcount = -1
        self._result: list[tuple[Any, ...]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append(sql)
        verb = sql.strip().split()[0].upper()
        if verb == "BEGIN":
            self.in_transaction = True
            self.staged = []
        elif verb == "COMMIT":
            self.committed.extend(self.staged)
            self.staged = []
            self.in_transaction = False
        elif verb == "ROLLBACK":
            self.staged = []
            self.in_transaction = False
        elif verb == "SELECT":
            if self.fail_on_select:
                raise RuntimeError("select failed")
            self._select(sql, params)
        elif verb == "INSERT" and "import_logs" in sql:
            if self.fail_on_import_log:
                raise RuntimeError("import_logs is missing")
            self.import_logs.append(tuple(params))
        elif verb == "UPDATE":
            *values, leave_id = params
            position = int(leave_id) - 1
            if 0 <= position < len(self.committed):
                self.committed[position] = tuple(values)
                self.rowcount = 1
            else:
                self.rowcount = 0

    def _select(self, sql: str, params: Any) -> None:
        if "FROM import_logs" in sql:
            self._result = [(*log[:4], "2024-01-01 00:00:00") for log in reversed(self.import_logs)]
        elif sql.startswith("SELECT cid, order_no, start_date, end_date"):
            self._result = [
                (r[_COL["cid"]], r[_COL["order_no"]], r[_COL["start_date"]], r[_COL["end_date"]])
                for r in self.committed
            ]
        else:
            rows = [(i + 1, *r) for i, r in enumerate(self.committed)]
            self._result = list(reversed(rows))

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._result)


@pytest.fixture()
def fake_cursor(monkeypatch) -> FakeCursor:
    """FakeCursor with batch inserts routed into its staging area."""
    import studyleave.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, page_size=1000, fetch=False):
        if cursor.fail_on_insert:
            raise RuntimeError("insert failed")
        first_id = len(cursor.committed) + len(cursor.staged) + 1
        cursor.staged.extend(tuple(r) for r in rows)
        if fetch:
            return [(first_id + i,) for i in range(len(rows))]
        return None

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return FakeCursor()
