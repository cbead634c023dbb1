"""Study-leave roster importer: Thai .xlsx rosters -> PostgreSQL study_leaves."""

__version__ = "0.1.0"
