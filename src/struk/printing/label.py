"""Shelf labels and printer test page.

Shelf labels are short ESC/POS jobs: product name, price and a CODE128
barcode with its human-readable text, centered on the paper.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Union

from struk.core.errors import MalformedLabelError
from struk.core.models import PaperSize
from struk.printing.escpos import BARCODE_CODE128, CommandStream
from struk.printing.layout import Alignment
from struk.settings import Settings, get_settings
from struk.utils.formatting import format_currency, format_receipt_date

logger = logging.getLogger(__name__)

MAX_BARCODE_LENGTH = 255

TEST_PAGE_LABELS: Dict[str, Dict[str, str]] = {
    "id": {
        "title": "Test Cetak",
        "connected": "Printer terhubung!",
        "width": "Lebar kertas: {chars} karakter",
    },
    "en": {
        "title": "Test Print",
        "connected": "Printer connected!",
        "width": "Paper width: {chars} characters",
    },
}


def _parse_price(price: Union[int, float, str, None]) -> Optional[float]:
    if price is None:
        return None
    if isinstance(price, str):
        price = price.strip()
        if not price:
            return None
        try:
            return float(price)
        except ValueError as e:
            raise MalformedLabelError(f"Invalid label price: {price!r}") from e
    return float(price)


class LabelGenerator:
    """Builds label and test-page command streams."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def generate_label(
        self,
        barcode: str,
        name: str = "",
        price: Union[int, float, str, None] = None,
        symbology: int = BARCODE_CODE128,
    ) -> bytes:
        """Encode a shelf label.

        Args:
            barcode: Barcode payload (printable ASCII, required)
            name: Product name, printed bold when given
            price: Price, printed as ``Rp <amount>`` when given
            symbology: GS k symbology number (CODE128 by default)

        Raises:
            MalformedLabelError: if the barcode is empty, not printable
                ASCII, too long, or the price is not a number
        """
        code = (barcode or "").strip()
        if not code:
            raise MalformedLabelError("Barcode text is required")
        if not code.isascii() or not code.isprintable():
            raise MalformedLabelError(f"Barcode must be printable ASCII: {code!r}")
        if len(code) > MAX_BARCODE_LENGTH:
            raise MalformedLabelError(f"Barcode longer than {MAX_BARCODE_LENGTH} characters")
        amount = _parse_price(price)

        printer = self.settings.printer
        stream = CommandStream(printer.encoding)
        stream.initialize().initialize()
        stream.align(Alignment.CENTER)

        name = (name or "").strip()
        if name:
            stream.bold(True).line(name).bold(False)
        if amount is not None:
            stream.line(f"Rp {format_currency(amount)}")
        stream.line()

        stream.barcode(code, symbology)
        stream.align(Alignment.CENTER).line(code)

        stream.feed(printer.final_feed_lines).cut(partial=printer.partial_cut)
        logger.info(f"Label encoded for barcode {code}")
        return stream.encode()

    def generate_test_page(self, paper: PaperSize, now: Optional[datetime] = None) -> bytes:
        """Short page confirming the printer is reachable."""
        labels = TEST_PAGE_LABELS[self.settings.language]
        printer = self.settings.printer
        stream = CommandStream(printer.encoding)
        stream.initialize().initialize()
        stream.align(Alignment.CENTER)
        stream.char_size(2, 2).line(labels["title"]).char_size(1, 1)
        stream.line("-" * 16)
        stream.line(labels["connected"])
        stream.line(labels["width"].format(chars=paper.chars))
        stream.line(format_receipt_date(now or datetime.now()))
        stream.feed(printer.final_feed_lines).cut(partial=printer.partial_cut)
        return stream.encode()
