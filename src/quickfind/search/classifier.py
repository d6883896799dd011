"""Deterministic file-type classification.

Rules are evaluated in a fixed order and the first match wins. Extension
rules for apps and shortcuts run before the directory check, so a directory
named ``setup.exe`` classifies as an app.
"""

from __future__ import annotations

import os

from quickfind.search.models import FileType


APP_EXTENSIONS = frozenset({"exe", "msi", "appx", "msix"})
SHORTCUT_EXTENSIONS = frozenset({"lnk", "url"})
DOCUMENT_EXTENSIONS = frozenset(
    {"pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "md", "csv", "rtf", "odt", "ods", "odp"}
)
IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "bmp", "svg", "webp", "ico"})
CODE_EXTENSIONS = frozenset(
    {
        "rs",
        "py",
        "js",
        "ts",
        "jsx",
        "tsx",
        "java",
        "c",
        "cpp",
        "h",
        "cs",
        "go",
        "rb",
        "php",
        "html",
        "css",
        "json",
        "xml",
        "yaml",
        "yml",
        "toml",
    }
)
START_MENU_MARKER = "start menu"


def classify_file(extension: str, filepath: str) -> FileType:
    """Classify an entry from its extension and full path."""
    ext = extension.lower()

    if ext in APP_EXTENSIONS:
        return FileType.APP
    if ext in SHORTCUT_EXTENSIONS:
        return FileType.SHORTCUT
    if os.path.isdir(filepath):
        return FileType.FOLDER
    if ext in DOCUMENT_EXTENSIONS:
        return FileType.DOCUMENT
    if ext in IMAGE_EXTENSIONS:
        return FileType.IMAGE
    if ext in CODE_EXTENSIONS:
        return FileType.CODE
    # Start Menu entries launch apps even without an executable extension
    if START_MENU_MARKER in filepath.lower():
        return FileType.APP
    return FileType.OTHER
