"""Default index roots, skip list and data directory for the host OS."""

from __future__ import annotations

import os
from pathlib import Path


APP_DIR_NAME = "quickfind"
DB_FILENAME = "quickfind_index.db"

# Matched case-insensitively against the exact directory name
DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".svn",
    "__pycache__",
    ".cache",
    "cache",
    ".tmp",
    "temp",
    "$recycle.bin",
    "system volume information",
    "windows",
    "appdata",
)

_SYSTEM_START_MENU = Path(r"C:\ProgramData\Microsoft\Windows\Start Menu")


def candidate_index_roots(home: Path | None = None, environ: dict[str, str] | None = None) -> list[Path]:
    """Return every well-known launcher root, whether or not it exists."""
    env = os.environ if environ is None else environ
    home_dir = home if home is not None else Path.home()

    candidates = [home_dir / "Desktop", home_dir / "Documents", home_dir / "Downloads"]
    if appdata := env.get("APPDATA"):
        candidates.append(Path(appdata) / "Microsoft" / "Windows" / "Start Menu")
    candidates.append(_SYSTEM_START_MENU)
    for variable in ("ProgramFiles", "ProgramFiles(x86)"):
        if value := env.get(variable):
            candidates.append(Path(value))
    return candidates


def default_index_roots(home: Path | None = None, environ: dict[str, str] | None = None) -> list[Path]:
    """Return the existing, de-duplicated launcher roots in discovery order."""
    roots: list[Path] = []
    for candidate in candidate_index_roots(home, environ):
        if candidate.is_dir() and candidate not in roots:
            roots.append(candidate)
    return roots


def default_data_dir(environ: dict[str, str] | None = None) -> Path:
    """Per-user data directory holding the index database."""
    env = os.environ if environ is None else environ
    if local_appdata := env.get("LOCALAPPDATA"):
        return Path(local_appdata) / APP_DIR_NAME
    if xdg_data_home := env.get("XDG_DATA_HOME"):
        return Path(xdg_data_home) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def default_db_path(environ: dict[str, str] | None = None) -> Path:
    return default_data_dir(environ) / DB_FILENAME
