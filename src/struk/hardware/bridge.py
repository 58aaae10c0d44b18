"""Printer bridge delivery via a custom URI scheme.

An external bridge app (RawBT on Android by default) registers a URI
scheme and prints whatever ESC/POS payload it receives:

    rawbt:base64,<base64(guard + commands)>

Opening the URI is fire-and-forget; whether the app exists, accepted
the payload or printed anything cannot be observed from here.
"""

import base64
import logging
import webbrowser
from typing import Callable, Optional

from struk.hardware.base import DispatchResult, DispatchStatus, Transport

logger = logging.getLogger(__name__)

# ESC d 0 - print and feed zero lines; a no-op that absorbs bytes some
# bridges drop at the start of a payload
GUARD = bytes([0x1B, 0x64, 0x00])

DEFAULT_SCHEME = "rawbt"

Opener = Callable[[str], Optional[bool]]


def build_bridge_uri(payload: bytes, scheme: str = DEFAULT_SCHEME) -> str:
    """Frame the payload behind the guard and wrap it in a bridge URI."""
    framed = GUARD + bytes(payload)
    return f"{scheme}:base64,{base64.b64encode(framed).decode('ascii')}"


class BridgeTransport(Transport):
    """Delivers payloads by opening a bridge URI.

    Args:
        scheme: URI scheme registered by the bridge app
        opener: Callable that opens a URI on the host; returns False
            when the host reports it could not open it. Defaults to
            :func:`webbrowser.open`.
    """

    name = "bridge"

    def __init__(self, scheme: str = DEFAULT_SCHEME, opener: Optional[Opener] = None):
        self._scheme = scheme
        self._opener = opener or webbrowser.open

    @property
    def scheme(self) -> str:
        return self._scheme

    def build_uri(self, payload: bytes) -> str:
        return build_bridge_uri(payload, self._scheme)

    async def dispatch(self, payload: bytes) -> DispatchResult:
        uri = self.build_uri(payload)
        logger.info(f"Dispatching {len(payload)} bytes to {self._scheme}: bridge")

        try:
            opened = self._opener(uri)
        except Exception as e:
            logger.error(f"Bridge launch failed: {e}")
            return DispatchResult(
                transport=self.name,
                status=DispatchStatus.LAUNCH_FAILED,
                payload_size=len(payload),
                target=self._scheme,
                error=str(e),
            )

        if opened is False:
            logger.error(f"Host could not open {self._scheme}: URI")
            return DispatchResult(
                transport=self.name,
                status=DispatchStatus.LAUNCH_FAILED,
                payload_size=len(payload),
                target=self._scheme,
                error="URI handler not available",
            )

        return DispatchResult(
            transport=self.name,
            status=DispatchStatus.DISPATCHED,
            payload_size=len(payload),
            target=self._scheme,
        )
