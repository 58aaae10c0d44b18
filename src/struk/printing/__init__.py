"""Printing module for STRUK - thermal receipt generation."""

from struk.printing.escpos import CommandStream
from struk.printing.label import LabelGenerator
from struk.printing.layout import (
    Alignment,
    center_pad,
    justify,
    rule_line,
    two_column,
    wrap,
    wrap_and_center,
)
from struk.printing.manager import PrintManager
from struk.printing.receipt import Receipt, ReceiptGenerator

__all__ = [
    # Receipt
    "ReceiptGenerator",
    "Receipt",
    "PrintManager",
    "LabelGenerator",
    "CommandStream",
    # Layout
    "Alignment",
    "justify",
    "center_pad",
    "wrap",
    "wrap_and_center",
    "rule_line",
    "two_column",
]
