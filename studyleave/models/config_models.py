from __future__ import annotations

from dataclasses import dataclass, field

from ..excel.vocabulary import DEFAULT_REQUIRED_FIELDS

"""Configuration dataclasses.

Built by studyleave.config.loader from config/import.yml; defaults here match
the current roster generation so tests and library callers can construct
ImportSettings() without a file.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables (.env, DATABASE_URL / PGDSN, PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportSettings:
    """Root configuration object for imports and reports."""
    upload_directory: str = "./uploads"  # where accepted uploads are kept
    header_scan_rows: int = 30
    data_start_scan_rows: int = 40
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    max_skipped_reports: int = 200
    max_duplicate_examples: int = 20
    due_window_days: int = 90
    timezone: str = "UTC"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
