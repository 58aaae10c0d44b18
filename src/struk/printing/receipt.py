"""Receipt generator.

Combines the store profile and a transaction record into:
- the canonical fixed-width text body
- an HTML preview for the screen
- an ESC/POS command stream for the thermal printer
"""

import html
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from struk.core.errors import LogoDecodeError, MalformedTransactionError
from struk.core.models import FeeType, StoreProfile, TransactionRecord
from struk.core.payment import PaymentState, PaymentStatus, change_status, subtotal_after_discount
from struk.graphics.logo import PixelBuffer, decode_logo, process_logo, to_data_url
from struk.printing.escpos import CommandStream
from struk.printing.layout import Alignment, rule_line, two_column, wrap_and_center
from struk.settings import Settings, get_settings
from struk.utils.formatting import format_currency, format_receipt_date, round_half_up

logger = logging.getLogger(__name__)


LABELS: Dict[str, Dict[str, str]] = {
    "id": {
        "number": "No:",
        "date": "Tgl:",
        "subtotal": "Subtotal",
        "total": "TOTAL",
        "cash": "TUNAI",
        "change": "KEMBALI",
        "short": "KURANG",
        "discount": "Disc",
        "feedback": "Kritik/Saran:",
        "preview": "PREVIEW",
        "no_id": "N/A",
    },
    "en": {
        "number": "No:",
        "date": "Date:",
        "subtotal": "Subtotal",
        "total": "TOTAL",
        "cash": "CASH",
        "change": "CHANGE",
        "short": "SHORT",
        "discount": "Disc",
        "feedback": "Feedback:",
        "preview": "PREVIEW",
        "no_id": "N/A",
    },
}

CURRENCY = "Rp."

HTML_FONT_STACK = "ui-monospace, Menlo, Monaco, Consolas, 'Courier New', monospace"
CHANGE_COLORS = {
    PaymentState.CHANGE: "#16a34a",
    PaymentState.INSUFFICIENT: "#dc2626",
}


@dataclass
class Receipt:
    """A rendered receipt in every output format."""

    text: str
    html: str
    raw_commands: bytes
    payment: PaymentStatus
    timestamp: datetime
    has_logo: bool = False


def _money(amount: float) -> str:
    return f"{CURRENCY}{format_currency(amount)}"


def _number(value: float) -> str:
    """10.0 -> "10", 2.5 -> "2.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


class ReceiptGenerator:
    """Renders receipts for one store profile.

    Holds no per-receipt state; one generator can render any number of
    receipts, concurrently if needed.
    """

    def __init__(self, profile: StoreProfile, settings: Optional[Settings] = None):
        self.profile = profile
        self.settings = settings or get_settings()
        self.labels = LABELS[self.settings.language]

    @property
    def width(self) -> int:
        return self.profile.chars

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def payment_for(self, record: TransactionRecord, preview: bool = False) -> PaymentStatus:
        """Change to print, taken from the stored ``change`` of the record.

        A preview has no payment yet and always shows its stored change
        under the change label.
        """
        if preview or record.is_preview:
            return PaymentStatus(PaymentState.CHANGE, max(0, round_half_up(record.change)))
        return change_status(record.change)

    def text_lines(self, record: TransactionRecord, preview: bool = False) -> List[str]:
        """Receipt body as a list of lines (no trailing newlines).

        Args:
            record: Transaction record (or raw mapping)
            preview: Render as an unpaid on-screen preview, whether or
                not the record itself is marked as one
        """
        if not isinstance(record, TransactionRecord):
            record = TransactionRecord.from_dict(record)
        self._check_amounts(record)
        preview = preview or record.is_preview

        w = self.width
        labels = self.labels
        lines: List[str] = []

        lines.extend(wrap_and_center(self.profile.name, w))
        for row in (self.profile.address or "").split("\n"):
            if row.strip():
                lines.extend(wrap_and_center(row, w))

        lines.append(rule_line("=", w))
        lines.append("")

        number = record.id if record.id not in (None, "") else (
            labels["preview"] if preview else labels["no_id"]
        )
        lines.append(f"{labels['number']} {number}")
        lines.append(f"{labels['date']} {format_receipt_date(record.timestamp)}")
        lines.append(rule_line("-", w))

        for item in record.items:
            lines.append(f"{item.name} x{item.quantity}")
            detail = f"@ {_money(item.unit_price)}"
            if item.discount_percentage > 0:
                detail += f" {labels['discount']} {_number(item.discount_percentage)}%"
            lines.append(two_column(detail, _money(item.extended_total), w))

        subtotal = subtotal_after_discount(record.items)
        lines.append(rule_line("-", w))
        lines.append(two_column(labels["subtotal"], _money(subtotal), w))

        for fee in record.fees:
            name = fee.name
            if fee.type is FeeType.PERCENTAGE:
                name += f" {_number(fee.value)}%"
            lines.append(two_column(name, _money(fee.computed_amount), w))

        payment = self.payment_for(record, preview)
        change_label = labels["change"] if payment.is_sufficient else labels["short"]

        lines.append(rule_line("-", w))
        lines.append(two_column(labels["total"], _money(record.total), w))
        lines.append(two_column(labels["cash"], _money(record.cash_paid), w))
        lines.append(two_column(change_label, _money(payment.amount), w))
        lines.append(rule_line("=", w))

        if self.profile.footer_text:
            lines.extend(wrap_and_center(self.profile.footer_text, w))
        if self.profile.feedback_phone:
            lines.extend(wrap_and_center(f"{labels['feedback']} {self.profile.feedback_phone}", w))

        return lines

    def generate_text(self, record: TransactionRecord, preview: bool = False) -> str:
        """Receipt body, one newline-terminated line per printed line."""
        return "".join(f"{line}\n" for line in self.text_lines(record, preview))

    def _check_amounts(self, record: TransactionRecord) -> None:
        """Fail fast on a record whose numbers cannot be printed."""
        if record.total < 0 or record.subtotal < 0:
            raise MalformedTransactionError(
                f"Negative totals in transaction {record.id}: "
                f"subtotal={record.subtotal} total={record.total}"
            )

    # ------------------------------------------------------------------
    # HTML preview
    # ------------------------------------------------------------------

    def _logo_src(self) -> str:
        """Image source for the preview.

        A stored string (data URL, http URL or path) is used as is; raw
        image bytes are turned into a data URL.
        """
        logo = self.profile.logo
        if isinstance(logo, str):
            return logo.strip()
        return to_data_url(logo)

    def generate_html(self, record: TransactionRecord, preview: bool = False) -> str:
        """Monospace HTML block for on-screen preview.

        The unprocessed logo is shown inline above the text; the TOTAL
        line is bold and the change line is colored by payment state.
        """
        if not isinstance(record, TransactionRecord):
            record = TransactionRecord.from_dict(record)
        w = self.width
        body = html.escape(self.generate_text(record, preview))

        total_pattern = rf"^({re.escape(self.labels['total'])}\s+{re.escape(CURRENCY)}.*)$"
        body = re.sub(total_pattern, r"<b>\1</b>", body, count=1, flags=re.MULTILINE)

        payment = self.payment_for(record, preview)
        change_label = self.labels["change"] if payment.is_sufficient else self.labels["short"]
        change_pattern = rf"^({re.escape(change_label)}\s+{re.escape(CURRENCY)}.*)$"
        body = re.sub(
            change_pattern,
            rf'<span class="change-{payment.state.value}" '
            rf'style="color:{CHANGE_COLORS[payment.state]};">\1</span>',
            body,
            count=1,
            flags=re.MULTILINE,
        )

        logo_html = ""
        if self.profile.prints_logo:
            try:
                src = self._logo_src()
                logo_html = (
                    f'<div style="width:{w}ch; margin:0 auto; text-align:left; margin-bottom:4px;">'
                    f'<img src="{html.escape(src)}" alt="Logo" style="display:block; width:100%; '
                    f'max-height:120px; object-fit:contain; background:#fff;"></div>'
                )
            except LogoDecodeError as e:
                logger.warning(f"Logo skipped in preview: {e}")

        return (
            f'<div style="width:{w}ch; margin:0 auto; font-family: {HTML_FONT_STACK}; line-height:1.2;">'
            f"{logo_html}"
            f'<pre style="margin:0; white-space:pre-wrap;">{body}</pre>'
            f"</div>"
        )

    # ------------------------------------------------------------------
    # ESC/POS
    # ------------------------------------------------------------------

    def prepare_logo(self) -> Optional[PixelBuffer]:
        """Decode and process the store logo for printing.

        Returns None when the logo is disabled or cannot be decoded; a
        broken logo never stops the receipt.
        """
        if not self.profile.prints_logo:
            return None
        opts = self.settings.logo
        try:
            buffer = decode_logo(self.profile.logo)
        except LogoDecodeError as e:
            logger.warning(f"Printing receipt without logo: {e}")
            return None
        return process_logo(
            buffer,
            width=self.profile.dots,
            max_height=opts.max_height,
            threshold=opts.threshold,
            outline=opts.outline,
            thickness=opts.outline_thickness,
        )

    def generate_escpos(
        self,
        record: TransactionRecord,
        logo: Optional[PixelBuffer] = None,
        preview: bool = False,
    ) -> bytes:
        """Serialize the receipt into printer commands.

        Args:
            record: Transaction to print
            logo: Processed logo from :meth:`prepare_logo`, or None
            preview: Print the unpaid preview layout

        Returns:
            ESC/POS command bytes
        """
        lines = self.text_lines(record, preview)
        printer = self.settings.printer
        w = self.width

        stream = CommandStream(printer.encoding)
        # Reset twice: clears a half-received command left from an earlier job
        stream.initialize().initialize()
        stream.align(Alignment.LEFT).line_spacing(printer.line_spacing_dots)

        if logo is not None:
            stream.align(Alignment.CENTER)
            stream.raster_image(logo, mode=self.settings.logo.raster_mode)
            if self.settings.logo.feed_lines:
                stream.feed(self.settings.logo.feed_lines)
            stream.align(Alignment.LEFT)

        total_label = self.labels["total"]
        for line in lines:
            if not line:
                stream.line()
                continue
            padded = line[:w].ljust(w)
            if line.startswith(total_label):
                stream.bold(True).line(padded).bold(False)
            else:
                stream.line(padded)

        stream.feed(printer.final_feed_lines).cut(partial=printer.partial_cut)
        return stream.encode()

    def generate_receipt(
        self,
        record: TransactionRecord,
        logo: Optional[PixelBuffer] = None,
        load_logo: bool = True,
        preview: bool = False,
    ) -> Receipt:
        """Render every output format for a transaction.

        Args:
            record: Transaction record (or raw mapping)
            logo: Already processed logo
            load_logo: When no logo is given, process the store logo here
            preview: Render as an unpaid preview (see :meth:`text_lines`)
        """
        if not isinstance(record, TransactionRecord):
            record = TransactionRecord.from_dict(record)
        if logo is None and load_logo:
            logo = self.prepare_logo()

        receipt = Receipt(
            text=self.generate_text(record, preview),
            html=self.generate_html(record, preview),
            raw_commands=self.generate_escpos(record, logo, preview),
            payment=self.payment_for(record, preview),
            timestamp=record.timestamp,
            has_logo=logo is not None,
        )
        logger.info(f"Receipt rendered: {record.id or 'preview'} ({len(receipt.raw_commands)} bytes)")
        return receipt
