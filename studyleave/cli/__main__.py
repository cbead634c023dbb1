from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd
import psycopg2
from dotenv import load_dotenv

from studyleave.config.loader import ConfigError, load_config
from studyleave.db.leaves import DatabaseError, fetch_leaves, fetch_recent_imports, save_leave
from studyleave.excel.archive import ArchiveError, read_workbook
from studyleave.excel.headers import DataStartNotFoundError, MissingColumnsError
from studyleave.logging.init import log_summary, setup_logging
from studyleave.models.config_models import ImportSettings
from studyleave.services.importer import ProcessingError, import_workbook, select_worksheets, store_upload
from studyleave.services.leaves import LeaveValidationError, prepare_leave
from studyleave.services.reports import dashboard_summary, leave_view, reports_summary
from studyleave.services.summary import render_summary_line

"""CLI entrypoint: python -m studyleave.cli <command>.

Commands:
- import FILE [--dry-run]   import one roster workbook
- inspect FILE              show resolved headers and sample rows per worksheet
- leaves                    list stored leaves with their status
- add-leave JSON_FILE [--id N]  insert or update one leave
- dashboard [--status S]    dashboard aggregates
- report                    report aggregates

Global options: --config PATH, --env-file PATH (default ./.env), --debug.

Exit codes: 0 success, 1 fatal, 2 import completed with skipped rows.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_ROWS_SKIPPED = 2

DEFAULT_CONFIG = Path("config/import.yml")
INSPECT_SAMPLE_ROWS = 3


def _dsn(cfg: ImportSettings) -> str:
    """Connection string; environment first, config database section as fallback.

    1. DATABASE_URL / PGDSN (whole DSN)
    2. config dsn
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, then config fields
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportSettings) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """psycopg2 connection + cursor.

    autocommit is on: services issue BEGIN / COMMIT / ROLLBACK themselves.
    """
    try:
        conn = psycopg2.connect(_dsn(cfg))
    except psycopg2.Error as e:
        raise DatabaseError(f"connection failed: {e}") from e
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over the existing environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _today(cfg: ImportSettings) -> date:
    return datetime.now(ZoneInfo(cfg.timezone)).date()


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="studyleave", description="Study-leave roster importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--env-file", type=Path, default=Path(".env"), help="dotenv file loaded before connecting")
    sub = p.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import one .xlsx roster")
    p_import.add_argument("file", type=Path)
    p_import.add_argument("--dry-run", action="store_true", help="Parse and reconcile without a database")

    p_inspect = sub.add_parser("inspect", help="Show resolved headers and sample rows")
    p_inspect.add_argument("file", type=Path)

    sub.add_parser("leaves", help="List stored leaves")

    p_add = sub.add_parser("add-leave", help="Insert or update one leave from a JSON file")
    p_add.add_argument("json_file", type=Path)
    p_add.add_argument("--id", type=int, default=None, dest="leave_id", help="Update this leave instead")

    p_dash = sub.add_parser("dashboard", help="Dashboard aggregates")
    p_dash.add_argument("--status", default="all", help="all | active | pending | completed")

    sub.add_parser("report", help="Report aggregates")
    return p.parse_args(argv)


def _cmd_import(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    path: Path = args.file
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL

    try:
        if args.dry_run:
            result = import_workbook(path, None, settings=cfg, original_name=path.name)
        else:
            stored = store_upload(path, cfg.upload_directory)
            logger.debug(f"stored upload at {stored}")
            with _db_connection(cfg) as cur:
                result = import_workbook(
                    stored,
                    cur,
                    settings=cfg,
                    original_name=path.name,
                    stored_path=str(stored),
                )
    except MissingColumnsError as e:
        logger.error(json.dumps(e.to_dict(), ensure_ascii=False))
        return EXIT_FATAL
    except (ArchiveError, ProcessingError, DataStartNotFoundError) as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except DatabaseError as e:
        logger.debug(f"database failure detail: {e}")
        logger.error("Database error")
        return EXIT_FATAL

    for entry in result.diagnostics.skipped_rows:
        logger.warning(f"row {entry['row']} skipped: {entry['reason']}")
    _print_json(result.to_dict())
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_ROWS_SKIPPED if result.skipped > 0 else EXIT_SUCCESS


def _cmd_inspect(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    try:
        workbook = read_workbook(args.file)
    except ArchiveError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL

    selections = select_worksheets(workbook, cfg)
    if not selections:
        print(f"FILE: {args.file.name} (no rows)")
        return EXIT_SUCCESS
    print(f"FILE: {args.file.name}")
    for sheet in selections:
        print(f"  SHEET: {sheet.title} rows={len(sheet.rows)} data_start={sheet.data_start}")
        print(f"    mapped={dict(sheet.header_map)}")
        if sheet.missing:
            print(f"    missing={sheet.missing}")
        start = sheet.data_start if sheet.data_start is not None else 0
        fields = sorted(sheet.header_map, key=sheet.header_map.__getitem__)
        sample = [
            [row[sheet.header_map[f]] if sheet.header_map[f] < len(row) else "" for f in fields]
            for row in sheet.rows[start:start + INSPECT_SAMPLE_ROWS]
        ]
        frame = pd.DataFrame(sample, columns=fields)
        print(frame.to_string(index=False) if not frame.empty else "    (no sample rows)")
    return EXIT_SUCCESS


def _cmd_leaves(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    with _db_connection(cfg) as cur:
        leaves = fetch_leaves(cur)
    today = _today(cfg)
    _print_json([leave_view(leave, today) for leave in leaves])
    return EXIT_SUCCESS


def _cmd_add_leave(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    try:
        payload = json.loads(args.json_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"add-leave: cannot read {args.json_file}: {e}")
        return EXIT_FATAL
    if not isinstance(payload, dict):
        logger.error("add-leave: JSON root must be an object")
        return EXIT_FATAL

    leave_id = args.leave_id if args.leave_id is not None else payload.get("id") or None
    try:
        draft = prepare_leave(payload)
    except LeaveValidationError as e:
        logger.error(str(e))
        return EXIT_FATAL
    with _db_connection(cfg) as cur:
        saved_id = save_leave(cur, draft, int(leave_id) if leave_id is not None else None)
    _print_json({"success": True, "id": saved_id})
    return EXIT_SUCCESS


def _cmd_dashboard(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    with _db_connection(cfg) as cur:
        leaves = fetch_leaves(cur)
        imports = fetch_recent_imports(cur)
    summary = dashboard_summary(
        leaves,
        _today(cfg),
        status=args.status,
        due_window_days=cfg.due_window_days,
        recent_imports=imports,
    )
    _print_json(summary)
    return EXIT_SUCCESS


def _cmd_report(args: argparse.Namespace, cfg: ImportSettings, logger: logging.Logger) -> int:
    with _db_connection(cfg) as cur:
        leaves = fetch_leaves(cur)
    _print_json(reports_summary(leaves, _today(cfg), due_window_days=cfg.due_window_days))
    return EXIT_SUCCESS


COMMANDS = {
    "import": _cmd_import,
    "inspect": _cmd_inspect,
    "leaves": _cmd_leaves,
    "add-leave": _cmd_add_leave,
    "dashboard": _cmd_dashboard,
    "report": _cmd_report,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when argv is None; tests call main([...])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(args.env_file, override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        return COMMANDS[args.command](args, cfg, logger)
    except DatabaseError as e:
        logger.debug(f"database failure detail: {e}")
        logger.error("Database error")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
