"""Shared fixtures for STRUK tests."""

from __future__ import annotations

from datetime import datetime
from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from struk.core.models import PaperSize, StoreProfile, TransactionRecord
from struk.core.payment import complete_transaction
from struk.hardware.base import DispatchResult, DispatchStatus, Transport
from struk.settings import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def profile() -> StoreProfile:
    return StoreProfile(
        name="Warung Kopi Sejahtera",
        address="Jl. Merdeka No. 10\nBandung",
        feedback_phone="0812-3456-7890",
        footer_text="Terima kasih atas kunjungan Anda!",
        paper=PaperSize.MM58,
        show_logo=False,
    )


@pytest.fixture()
def kopi_record() -> TransactionRecord:
    """2 x Kopi @ 10.000 with 10% PPN, paid 25.000."""
    return complete_transaction(
        items=[{"name": "Kopi", "quantity": 2, "price": 10000, "effectivePrice": 10000}],
        fees=[{"name": "PPN", "type": "percentage", "value": 10}],
        cash_paid=25000,
        timestamp=datetime(2024, 3, 7, 14, 5, 9),
        transaction_id=1042,
    )


def png_bytes(gray: np.ndarray) -> bytes:
    """Encode a grayscale array as PNG."""
    buf = BytesIO()
    Image.fromarray(np.asarray(gray, dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def logo_png() -> bytes:
    """White 80x40 image with a black 20x20 block in the middle."""
    gray = np.full((40, 80), 255, dtype=np.uint8)
    gray[10:30, 30:50] = 0
    return png_bytes(gray)


class RecordingTransport(Transport):
    """Transport that keeps every payload it receives."""

    name = "recording"

    def __init__(self) -> None:
        self.payloads: list[bytes] = []

    async def dispatch(self, payload: bytes) -> DispatchResult:
        self.payloads.append(payload)
        return DispatchResult(
            transport=self.name,
            status=DispatchStatus.DISPATCHED,
            payload_size=len(payload),
        )


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()
