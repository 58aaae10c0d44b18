"""ESC/POS command stream.

Accumulates printer commands as byte segments and serializes them once.
Only the subset of ESC/POS needed for receipts and shelf labels is
covered: reset, alignment, bold, character size, line spacing, feed,
cut, raster images (GS v 0) and 1D barcodes (GS k).
"""

import codecs
import logging
from typing import List, Union

import numpy as np
from numpy.typing import NDArray

from struk.core.errors import CommandStreamFinalizedError, EncoderUnavailableError
from struk.graphics.logo import PixelBuffer
from struk.printing.layout import Alignment

logger = logging.getLogger(__name__)

ESC = b'\x1b'
GS = b'\x1d'
LF = b'\x0a'

# GS k m: function B symbologies (length-prefixed data)
BARCODE_UPC_A = 65
BARCODE_EAN13 = 67
BARCODE_EAN8 = 68
BARCODE_CODE39 = 69
BARCODE_CODE128 = 73


class CommandStream:
    """Ordered printer commands, serialized by :meth:`encode`.

    Every builder method returns the stream so calls can be chained::

        data = (CommandStream()
                .initialize()
                .align(Alignment.CENTER)
                .line("Hello")
                .feed(3)
                .cut()
                .encode())

    After :meth:`encode` the stream is frozen; further commands raise
    CommandStreamFinalizedError.
    """

    def __init__(self, encoding: str = "cp437"):
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise EncoderUnavailableError(f"Unknown printer code page: {encoding}") from e
        self._encoding = encoding
        self._segments: List[bytes] = []
        self._encoded: Union[bytes, None] = None

    @property
    def finalized(self) -> bool:
        return self._encoded is not None

    def __len__(self) -> int:
        return len(self._segments)

    def _append(self, data: bytes) -> "CommandStream":
        if self._encoded is not None:
            raise CommandStreamFinalizedError("Command stream already encoded")
        self._segments.append(data)
        return self

    def raw(self, data: Union[bytes, bytearray, List[int]]) -> "CommandStream":
        """Append raw device bytes."""
        return self._append(bytes(data))

    def initialize(self) -> "CommandStream":
        """ESC @ - reset printer state."""
        return self._append(ESC + b'@')

    def text(self, text: str) -> "CommandStream":
        """Text without a line feed, encoded in the stream's code page."""
        return self._append(text.encode(self._encoding, errors="replace"))

    def line(self, text: str = "") -> "CommandStream":
        """Text followed by LF."""
        if text:
            self.text(text)
        return self._append(LF)

    def align(self, alignment: Alignment) -> "CommandStream":
        """ESC a n - set justification."""
        align_byte = {
            Alignment.LEFT: b'\x00',
            Alignment.CENTER: b'\x01',
            Alignment.RIGHT: b'\x02',
        }
        return self._append(ESC + b'a' + align_byte[alignment])

    def bold(self, enabled: bool) -> "CommandStream":
        """ESC E n - emphasized mode."""
        return self._append(ESC + b'E' + (b'\x01' if enabled else b'\x00'))

    def char_size(self, width: int = 1, height: int = 1) -> "CommandStream":
        """GS ! n - character magnification, 1 to 8 in each direction."""
        if not (1 <= width <= 8 and 1 <= height <= 8):
            raise ValueError(f"Character size out of range: {width}x{height}")
        return self._append(GS + b'!' + bytes([((width - 1) << 4) | (height - 1)]))

    def line_spacing(self, dots: int) -> "CommandStream":
        """ESC 3 n - line spacing in dots."""
        return self._append(ESC + b'3' + bytes([_u8(dots)]))

    def default_line_spacing(self) -> "CommandStream":
        """ESC 2 - device default line spacing."""
        return self._append(ESC + b'2')

    def feed(self, lines: int = 1) -> "CommandStream":
        """ESC d n - print and feed n lines."""
        return self._append(ESC + b'd' + bytes([_u8(lines)]))

    def cut(self, partial: bool = True) -> "CommandStream":
        """GS V m - cut paper (m = 1 partial, 0 full)."""
        return self._append(GS + b'V' + (b'\x01' if partial else b'\x00'))

    def raster_image(self, image: Union[PixelBuffer, NDArray[np.bool_]], mode: int = 0) -> "CommandStream":
        """GS v 0 - print a raster bit image.

        Args:
            image: Black/white PixelBuffer or an ink mask (True = black).
                Width is padded with white to a multiple of 8 dots.
            mode: 0 normal, 1 double width, 2 double height, 3 quadruple
        """
        if not 0 <= mode <= 3:
            raise ValueError(f"Invalid raster mode: {mode}")
        mask = image.ink_mask() if isinstance(image, PixelBuffer) else np.asarray(image, dtype=bool)
        data, bytes_per_line, height = pack_raster(mask)

        # Format: GS v 0 m xL xH yL yH data
        return self._append(b''.join([
            GS + b'v0',
            bytes([mode]),
            bytes([bytes_per_line & 0xFF, (bytes_per_line >> 8) & 0xFF]),
            bytes([height & 0xFF, (height >> 8) & 0xFF]),
            data,
        ]))

    def barcode(self, data: str, symbology: int = BARCODE_CODE128) -> "CommandStream":
        """GS k m n d1..dn - 1D barcode, payload length-prefixed."""
        payload = data.encode("ascii")
        if not 0 < len(payload) <= 255:
            raise ValueError(f"Barcode payload must be 1-255 bytes, got {len(payload)}")
        return self._append(GS + b'k' + bytes([symbology, len(payload)]) + payload)

    def encode(self) -> bytes:
        """Serialize and freeze the stream. Repeated calls return the same bytes."""
        if self._encoded is None:
            self._encoded = b''.join(self._segments)
            logger.debug(f"Encoded {len(self._segments)} commands, {len(self._encoded)} bytes")
        return self._encoded


def pack_raster(mask: NDArray[np.bool_]):
    """Pack an ink mask into MSB-first raster rows.

    Returns:
        (data, bytes_per_line, height)
    """
    height, width = mask.shape
    padded_width = -(-width // 8) * 8
    if padded_width != width:
        mask = np.pad(mask, ((0, 0), (0, padded_width - width)), constant_values=False)
    data = np.packbits(mask.astype(np.uint8), axis=1, bitorder="big")
    return data.tobytes(), padded_width // 8, height


def _u8(value: int) -> int:
    if not 0 <= value <= 255:
        raise ValueError(f"Value out of byte range: {value}")
    return value
