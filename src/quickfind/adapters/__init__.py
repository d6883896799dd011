"""Adapters layer - integrations with the host desktop."""

from .shell import ShellError, ShellIntegration, SystemShell


__all__ = [
    "ShellError",
    "ShellIntegration",
    "SystemShell",
]
