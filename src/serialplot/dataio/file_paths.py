"""Helpers for constructing export file paths."""

import re
from datetime import datetime
from pathlib import Path

# Allow only alphanumerics, underscore, dot, and dash.
_SESSION_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def _sanitize_session_name(name: str) -> str:
    """
    Sanitize a session name for use in a file name.

    - Replace disallowed characters with '_'.
    - Strip leading/trailing underscores.
    - Fall back to 'session' if nothing remains.
    """
    cleaned = _SESSION_NAME_RE.sub("_", name).strip("_")
    return cleaned or "session"


def export_path(name: str, suffix: str, base: Path | None = None) -> Path:
    """
    Build a timestamped export file path.

    Example: ``exports/ttyACM0_20251204_153045.csv``
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    root = base if base is not None else Path("exports")
    safe_name = _sanitize_session_name(name)
    suffix = suffix if suffix.startswith(".") else f".{suffix}"
    return root / f"{safe_name}_{timestamp}{suffix}"
