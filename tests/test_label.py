"""Tests for shelf labels and the printer test page."""

from __future__ import annotations

from datetime import datetime

import pytest

from struk.core.errors import MalformedLabelError
from struk.core.models import PaperSize
from struk.printing.label import LabelGenerator
from struk.settings import Settings


@pytest.fixture()
def labels(settings: Settings) -> LabelGenerator:
    return LabelGenerator(settings)


class TestLabel:
    def test_full_label(self, labels: LabelGenerator) -> None:
        data = labels.generate_label("12345678", name="Kopi Susu", price=12000)
        assert data.startswith(b"\x1b@\x1b@\x1ba\x01")
        assert b"\x1bE\x01Kopi Susu\n\x1bE\x00" in data
        assert b"Rp 12.000\n\n" in data
        assert b"\x1dk\x49\x08" + b"12345678" in data
        assert b"\x1ba\x0112345678\n" in data
        assert data.endswith(b"\x1bd\x03\x1dV\x01")

    def test_barcode_only(self, labels: LabelGenerator) -> None:
        data = labels.generate_label("ABC-1")
        assert b"\x1bE\x01" not in data
        assert b"Rp " not in data
        assert b"\x1dk\x49\x05ABC-1" in data

    def test_price_from_string(self, labels: LabelGenerator) -> None:
        assert b"Rp 7.500\n" in labels.generate_label("1", price="7500")

    def test_blank_price_ignored(self, labels: LabelGenerator) -> None:
        assert b"Rp " not in labels.generate_label("1", price="  ")

    @pytest.mark.parametrize("barcode", ["", "   ", "kopié", "tab\there", "9" * 256])
    def test_rejects_bad_barcode(self, labels: LabelGenerator, barcode: str) -> None:
        with pytest.raises(MalformedLabelError):
            labels.generate_label(barcode)

    def test_rejects_bad_price(self, labels: LabelGenerator) -> None:
        with pytest.raises(MalformedLabelError):
            labels.generate_label("123", price="dua ribu")


class TestTestPage:
    def test_contents(self, labels: LabelGenerator) -> None:
        data = labels.generate_test_page(PaperSize.MM58, now=datetime(2024, 5, 1, 8, 0, 0))
        assert b"\x1d!\x11Test Cetak\n\x1d!\x00" in data
        assert b"-" * 16 + b"\n" in data
        assert b"Printer terhubung!\n" in data
        assert b"Lebar kertas: 32 karakter\n" in data
        assert b"1/5/2024, 08.00.00\n" in data
        assert data.endswith(b"\x1dV\x01")

    def test_wide_paper(self, labels: LabelGenerator) -> None:
        assert b"Lebar kertas: 42 karakter" in labels.generate_test_page(PaperSize.MM80)

    def test_english_labels(self) -> None:
        labels = LabelGenerator(Settings(_env_file=None, language="en"))
        data = labels.generate_test_page(PaperSize.MM58, now=datetime(2024, 5, 1, 8, 0, 0))
        assert b"\x1d!\x11Test Print\n" in data
        assert b"Printer connected!\n" in data
        assert b"Paper width: 32 characters\n" in data
        assert b"Test Cetak" not in data
