"""Direct serial delivery for ESC/POS printers.

Writes the command stream straight to a printer on a serial port (USB
adapter or GPIO UART). Like the bridge, a successful write only means
the bytes left the port; the printer does not report back.
"""

import asyncio
import logging
from typing import Optional

from struk.hardware.base import DispatchResult, DispatchStatus, Transport

logger = logging.getLogger(__name__)


class SerialTransport(Transport):
    """Sends payloads over a serial port with pyserial.

    The port is opened lazily on the first dispatch and kept open.
    """

    name = "serial"

    # Default UART settings
    DEFAULT_BAUD = 9600
    DEFAULT_PORT = "/dev/serial0"

    CHUNK_SIZE = 256
    CHUNK_DELAY = 0.01

    def __init__(self, port: str = DEFAULT_PORT, baud: int = DEFAULT_BAUD, serial_factory=None):
        """
        Args:
            port: Serial port path
            baud: Baud rate
            serial_factory: Callable returning an open port object with
                ``write``/``flush``/``close``; defaults to ``serial.Serial``
        """
        self._port = port
        self._baud = baud
        self._serial_factory = serial_factory
        self._serial = None

    def _open(self):
        if self._serial is not None:
            return self._serial

        if self._serial_factory is not None:
            self._serial = self._serial_factory(self._port, self._baud)
        else:
            import serial

            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=2.0,
            )
        logger.info(f"Serial printer port opened: {self._port}")
        return self._serial

    def is_ready(self) -> bool:
        return self._serial is not None

    def close(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None
            logger.info("Serial printer port closed")

    async def dispatch(self, payload: bytes) -> DispatchResult:
        logger.info(f"Dispatching {len(payload)} bytes to {self._port}")
        error: Optional[str] = None
        try:
            port = self._open()
            # Send in chunks to avoid overflowing the printer's buffer
            for i in range(0, len(payload), self.CHUNK_SIZE):
                port.write(payload[i:i + self.CHUNK_SIZE])
                port.flush()
                await asyncio.sleep(self.CHUNK_DELAY)
        except Exception as e:
            logger.error(f"Serial write failed: {e}")
            error = str(e)
            self.close()

        return DispatchResult(
            transport=self.name,
            status=DispatchStatus.LAUNCH_FAILED if error else DispatchStatus.DISPATCHED,
            payload_size=len(payload),
            target=self._port,
            error=error,
        )
