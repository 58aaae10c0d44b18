"""STRUK - receipt rendering for thermal printers."""

__version__ = "0.1.0"
