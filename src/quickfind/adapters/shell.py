"""Hand paths to the desktop shell: launch them or reveal them in a file manager."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import subprocess
import sys
from typing import Protocol, runtime_checkable


logger = logging.getLogger(__name__)


class ShellError(RuntimeError):
    """Raised when a path is missing or the shell process cannot be spawned."""


@runtime_checkable
class ShellIntegration(Protocol):
    """Shell surface consumed by the launcher service."""

    def launch(self, path: str) -> None:  # pragma: no cover - Protocol only
        """Open ``path`` with its default handler (or execute it)."""

    def open_containing_folder(self, path: str) -> None:  # pragma: no cover - Protocol only
        """Show ``path`` selected in the platform file manager."""


class SystemShell:
    """``ShellIntegration`` backed by the host OS.

    Windows goes through ``os.startfile`` and ``explorer``; macOS through
    ``open``; everything else through ``xdg-open``.
    """

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    def launch(self, path: str) -> None:
        target = self._require_existing(path)
        extension = target.suffix.lower()
        logger.info("Launching %s (type: %s)", path, extension.lstrip(".") or "none")

        if self.platform == "win32":
            if extension == ".exe":
                self._spawn([str(target)], cwd=str(target.parent))
            else:
                self._startfile(str(target))
        elif self.platform == "darwin":
            self._spawn(["open", str(target)])
        else:
            self._spawn(["xdg-open", str(target)])

    def open_containing_folder(self, path: str) -> None:
        target = self._require_existing(path)
        if self.platform == "win32":
            self._spawn(["explorer.exe", "/select,", str(target)])
        elif self.platform == "darwin":
            self._spawn(["open", "-R", str(target)])
        else:
            # xdg-open cannot select a file; open its parent instead
            folder = target if target.is_dir() else target.parent
            self._spawn(["xdg-open", str(folder)])
        logger.info("Opened containing folder for %s", path)

    @staticmethod
    def _require_existing(path: str) -> Path:
        target = Path(path)
        if not target.exists():
            raise ShellError(f"File not found: {path}")
        return target

    @staticmethod
    def _spawn(args: list[str], cwd: str | None = None) -> None:
        try:
            subprocess.Popen(args, cwd=cwd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except PermissionError as exc:
            raise ShellError(f"Permission denied: '{args[-1]}'. Try running as administrator.") from exc
        except OSError as exc:
            logger.error("Failed to spawn %s: %s", args[0], exc)
            raise ShellError(f"Failed to open '{args[-1]}': {exc}") from exc

    @staticmethod
    def _startfile(path: str) -> None:
        try:
            os.startfile(path)  # type: ignore[attr-defined]
        except OSError as exc:
            logger.error("Failed to shell open %s: %s", path, exc)
            raise ShellError(f"Failed to open '{path}': {exc}") from exc
