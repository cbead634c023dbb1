"""Domain models for the study-leave roster importer."""

from .config_models import DatabaseConfig, ImportSettings
from .diagnostics import ImportDiagnostics
from .error_record import ErrorRecord
from .import_result import ImportResult, SheetSelection
from .leave_record import LEAVE_COLUMNS, DedupKey, LeaveRecordDraft

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportSettings",
    # Record models
    "LEAVE_COLUMNS",
    "DedupKey",
    "LeaveRecordDraft",
    # Import bookkeeping
    "ImportDiagnostics",
    "ImportResult",
    "SheetSelection",
    "ErrorRecord",
]
