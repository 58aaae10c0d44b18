"""Printer delivery for STRUK."""

from struk.hardware.base import DispatchResult, DispatchStatus, Transport
from struk.hardware.bridge import BridgeTransport, build_bridge_uri
from struk.hardware.serial_port import SerialTransport

__all__ = [
    "Transport",
    "DispatchResult",
    "DispatchStatus",
    "BridgeTransport",
    "SerialTransport",
    "build_bridge_uri",
]
