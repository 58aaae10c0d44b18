"""Print manager for STRUK receipts.

Entry point of the receipt pipeline. Everything a render needs (settings
store, transport, configuration) is passed in explicitly; nothing is
read from global application state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from struk.core.models import StoreProfile, TransactionRecord
from struk.core.store import SettingsStore, load_store_profile
from struk.graphics.logo import PixelBuffer
from struk.hardware.base import DispatchResult, Transport
from struk.hardware.bridge import BridgeTransport
from struk.hardware.serial_port import SerialTransport
from struk.printing.label import LabelGenerator
from struk.printing.receipt import Receipt, ReceiptGenerator
from struk.settings import Settings, get_settings

logger = logging.getLogger(__name__)

RecordInput = Union[TransactionRecord, Mapping[str, Any]]


def create_transport(settings: Settings) -> Transport:
    """Factory for the configured transport."""
    printer = settings.printer
    if printer.transport == "serial":
        return SerialTransport(port=printer.serial_port, baud=printer.serial_baudrate)
    return BridgeTransport(scheme=printer.bridge_scheme)


class PrintManager:
    """Renders receipts and labels and hands them to a transport.

    Each call loads the store profile afresh and allocates its own
    buffers and command stream, so calls may run concurrently.
    """

    def __init__(
        self,
        store: SettingsStore,
        transport: Optional[Transport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._transport = transport if transport is not None else create_transport(self._settings)

    @property
    def transport(self) -> Transport:
        return self._transport

    async def load_profile(self) -> StoreProfile:
        """Read the store profile from the settings store."""
        return await load_store_profile(self._store)

    async def _prepare_logo(self, generator: ReceiptGenerator) -> Optional[PixelBuffer]:
        """Process the logo off the event loop, bounded by the decode timeout."""
        if not generator.profile.prints_logo:
            return None
        timeout = self._settings.logo.decode_timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(generator.prepare_logo), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Logo processing exceeded {timeout}s, printing without logo")
            return None

    async def render_receipt(self, record: RecordInput, preview: bool = False) -> Receipt:
        """Render a transaction in every format.

        With ``preview`` the record is rendered as an unpaid preview: no
        identifier is required and the stored change is shown as is.
        """
        if not isinstance(record, TransactionRecord):
            record = TransactionRecord.from_dict(record)
        generator = ReceiptGenerator(await self.load_profile(), self._settings)
        logo = await self._prepare_logo(generator)
        return generator.generate_receipt(record, logo, load_logo=False, preview=preview)

    async def preview_receipt(self, record: RecordInput) -> str:
        """HTML preview only; the logo is shown unprocessed."""
        if not isinstance(record, TransactionRecord):
            record = TransactionRecord.from_dict(record)
        generator = ReceiptGenerator(await self.load_profile(), self._settings)
        return generator.generate_html(record, preview=True)

    async def print_receipt(self, record: RecordInput) -> DispatchResult:
        """Render and dispatch a receipt. Not retried on failure."""
        receipt = await self.render_receipt(record)
        result = await self._transport.dispatch(receipt.raw_commands)
        if not result.dispatched:
            logger.error(f"Receipt not dispatched: {result.error}")
        return result

    async def print_label(
        self,
        barcode: str,
        name: str = "",
        price: Union[int, float, str, None] = None,
    ) -> DispatchResult:
        """Encode and dispatch a shelf label."""
        payload = LabelGenerator(self._settings).generate_label(barcode, name=name, price=price)
        return await self._transport.dispatch(payload)

    async def test_print(self) -> DispatchResult:
        """Dispatch the printer test page for the configured paper size."""
        profile = await self.load_profile()
        payload = LabelGenerator(self._settings).generate_test_page(profile.paper)
        return await self._transport.dispatch(payload)
