"""Data input/output helpers (CSV exports, raw logs and file paths).

Utility modules here keep disk-level concerns isolated from the session:
- :mod:`csv_writer` writes CSV exports and raw record logs.
- :mod:`log_loader` reads them back for offline review and round-trip checks.
- :mod:`file_paths` builds timestamped export file names.
"""
