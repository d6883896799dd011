"""Local file-search core for a desktop quick-launcher."""

__version__ = "0.1.0"
