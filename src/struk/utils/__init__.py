"""Utility helpers for STRUK."""

from struk.utils.formatting import format_currency, format_receipt_date, round_half_up

__all__ = ["format_currency", "format_receipt_date", "round_half_up"]
