"""Logo processing for thermal printing.

Thermal heads reproduce grayscale and halftone logos poorly at receipt
sizes, so store logos are reduced to a thin black outline before
printing:

    decode -> crop -> scale -> threshold -> binarize -> auto-invert
           -> despeckle -> outline

Each stage takes a PixelBuffer and returns the buffer the next stage
must use. Stages may modify the buffer they receive; a caller that
wants to keep the input intact passes ``buffer.copy()``.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from struk.core.errors import LogoDecodeError

logger = logging.getLogger(__name__)

# ITU-R BT.709 luma weights
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

WHITESPACE_LUMINANCE = 245
OTSU_MIN = 150
OTSU_MAX = 230
INVERT_BLACK_RATIO = 0.35

INK = 0
PAPER = 255


@dataclass
class PixelBuffer:
    """RGBA pixel grid, row-major, shape (height, width, 4), uint8.

    ``black_ratio`` is set by :func:`binarize` and kept up to date by
    :func:`auto_invert`.
    """

    pixels: NDArray[np.uint8]
    black_ratio: Optional[float] = field(default=None)

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (h, w, 4) RGBA pixels, got {self.pixels.shape}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_gray(cls, gray: NDArray) -> "PixelBuffer":
        """Build an opaque buffer from a (h, w) grayscale array."""
        g = np.asarray(gray, dtype=np.uint8)
        alpha = np.full_like(g, 255)
        return cls(np.stack([g, g, g, alpha], axis=2))

    @classmethod
    def from_mask(cls, mask: NDArray[np.bool_]) -> "PixelBuffer":
        """Build a black/white buffer from an ink mask (True = black)."""
        return cls.from_gray(np.where(mask, INK, PAPER))

    @classmethod
    def from_image(cls, img) -> "PixelBuffer":
        """Build a buffer from a PIL Image."""
        return cls(np.array(img.convert("RGBA"), dtype=np.uint8))

    def to_image(self):
        """Convert to a PIL RGBA Image."""
        from PIL import Image

        return Image.fromarray(self.pixels)

    def ink_mask(self) -> NDArray[np.bool_]:
        """True where the pixel is ink. Meaningful after binarize."""
        return luminance(self) < 128

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy(), self.black_ratio)


def decode_logo(data: Union[bytes, bytearray, str]) -> PixelBuffer:
    """Decode an encoded image (raw bytes or a ``data:`` URL).

    Raises:
        LogoDecodeError: if the data is not a readable image
    """
    if isinstance(data, str):
        data = _data_url_bytes(data)

    try:
        from PIL import Image, UnidentifiedImageError

        with Image.open(BytesIO(bytes(data))) as img:
            img.load()
            return PixelBuffer.from_image(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise LogoDecodeError(f"Cannot decode logo: {e}") from e


def _data_url_bytes(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise LogoDecodeError("Logo is not a base64 data URL")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise LogoDecodeError(f"Invalid base64 logo payload: {e}") from e


def to_data_url(data: Union[bytes, bytearray, str]) -> str:
    """Return the logo as a ``data:`` URL for inline HTML previews.

    Raises:
        LogoDecodeError: if raw bytes are not a recognizable image
    """
    if isinstance(data, str):
        _data_url_bytes(data)
        return data

    try:
        from PIL import Image, UnidentifiedImageError

        with Image.open(BytesIO(bytes(data))) as img:
            mime = Image.MIME.get(img.format or "", "image/png")
    except (UnidentifiedImageError, OSError) as e:
        raise LogoDecodeError(f"Cannot identify logo: {e}") from e
    return f"data:{mime};base64,{base64.b64encode(bytes(data)).decode('ascii')}"


def luminance(buffer: PixelBuffer) -> NDArray[np.float64]:
    """Per-pixel luminance, transparent pixels composited over white."""
    rgb = buffer.pixels[:, :, :3].astype(np.float64)
    alpha = buffer.pixels[:, :, 3].astype(np.float64) / 255.0
    lum = rgb @ LUMA_WEIGHTS
    return lum * alpha + 255.0 * (1.0 - alpha)


def gray_levels(buffer: PixelBuffer) -> NDArray[np.int64]:
    """Luminance rounded to integer levels 0-255."""
    return np.clip(np.rint(luminance(buffer)), 0, 255).astype(np.int64)


def crop_whitespace(buffer: PixelBuffer, threshold: int = WHITESPACE_LUMINANCE) -> PixelBuffer:
    """Strip near-white rows from the top and bottom.

    Returns a new buffer. A completely blank image is returned unchanged.
    """
    content_rows = np.flatnonzero((gray_levels(buffer) <= threshold).any(axis=1))
    if content_rows.size == 0:
        return buffer
    top, bottom = int(content_rows[0]), int(content_rows[-1]) + 1
    if top == 0 and bottom == buffer.height:
        return buffer
    logger.debug(f"Cropped logo rows {top}:{bottom} of {buffer.height}")
    return PixelBuffer(buffer.pixels[top:bottom].copy(), buffer.black_ratio)


def otsu_threshold(buffer: PixelBuffer, low: int = OTSU_MIN, high: int = OTSU_MAX) -> int:
    """Pick a binarization threshold with Otsu's method.

    Pixels at or below the threshold are ink. When several thresholds
    share the maximum between-class variance the middle one is used.
    The result is clamped to ``[low, high]``.
    """
    hist = np.bincount(gray_levels(buffer).ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total == 0:
        return low

    p = hist / total
    omega = np.cumsum(p)
    mu = np.cumsum(p * np.arange(256))
    mu_total = mu[-1]

    denom = omega * (1.0 - omega)
    with np.errstate(divide="ignore", invalid="ignore"):
        sigma_b = np.where(denom > 0, (mu_total * omega - mu) ** 2 / denom, 0.0)

    best = np.flatnonzero(np.isclose(sigma_b, sigma_b.max()))
    threshold = int(round(best.mean()))
    return int(min(max(threshold, low), high))


def binarize(buffer: PixelBuffer, threshold: int) -> PixelBuffer:
    """Map every pixel to pure black or white and record the black ratio."""
    mask = gray_levels(buffer) <= threshold
    _write_mask(buffer, mask)
    buffer.black_ratio = float(mask.mean()) if mask.size else 0.0
    logger.debug(f"Binarized at {threshold}: black ratio {buffer.black_ratio:.3f}")
    return buffer


def auto_invert(buffer: PixelBuffer, max_black_ratio: float = INVERT_BLACK_RATIO) -> PixelBuffer:
    """Invert a mostly-black (negative) logo so it prints as line art."""
    if buffer.black_ratio is None:
        raise ValueError("auto_invert needs a binarized buffer")
    if buffer.black_ratio > max_black_ratio:
        _write_mask(buffer, ~buffer.ink_mask())
        logger.debug(f"Inverted negative logo (black ratio {buffer.black_ratio:.3f})")
        buffer.black_ratio = 1.0 - buffer.black_ratio
    return buffer


def _neighbor_count(mask: NDArray[np.bool_]) -> NDArray[np.int64]:
    """Number of ink pixels among the 8 neighbors of each pixel."""
    h, w = mask.shape
    padded = np.pad(mask, 1, constant_values=False).astype(np.int64)
    count = np.zeros((h, w), dtype=np.int64)
    for dy in (0, 1, 2):
        for dx in (0, 1, 2):
            if dy == 1 and dx == 1:
                continue
            count += padded[dy:dy + h, dx:dx + w]
    return count


def despeckle(buffer: PixelBuffer) -> PixelBuffer:
    """Turn black pixels with at most one black neighbor white."""
    mask = buffer.ink_mask()
    speckles = mask & (_neighbor_count(mask) <= 1)
    if speckles.any():
        logger.debug(f"Removed {int(speckles.sum())} isolated pixels")
        _write_mask(buffer, mask & ~speckles)
    return buffer


def erode(mask: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """3x3 erosion; pixels outside the image count as white."""
    return mask & (_neighbor_count(mask) == 8)


def dilate(mask: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """3x3 dilation."""
    return mask | (_neighbor_count(mask) > 0)


def extract_outline(buffer: PixelBuffer, thickness: int = 1) -> PixelBuffer:
    """Keep only boundary pixels of the ink mask.

    The outline is the mask minus its erosion, one pixel wide. With
    ``thickness > 1`` it is dilated once to a three pixel stroke.
    """
    mask = buffer.ink_mask()
    outline = mask & ~erode(mask)
    if thickness > 1:
        outline = dilate(outline)
    _write_mask(buffer, outline)
    return buffer


def scale_to_width(buffer: PixelBuffer, width: int, max_height: int) -> PixelBuffer:
    """Resize to ``width`` dots, keeping the aspect ratio.

    When that would be taller than ``max_height`` the image is fitted to
    the height instead (and ends up narrower). Nearest-neighbor
    resampling keeps edges hard. Returns a new buffer.
    """
    from PIL import Image

    ratio = width / buffer.width
    target_w, target_h = width, max(1, round(buffer.height * ratio))
    if target_h > max_height:
        target_h = max_height
        target_w = max(1, round(buffer.width * max_height / buffer.height))

    if (target_w, target_h) == (buffer.width, buffer.height):
        return buffer

    img = buffer.to_image().resize((target_w, target_h), Image.Resampling.NEAREST)
    return PixelBuffer(np.array(img, dtype=np.uint8), buffer.black_ratio)


def _write_mask(buffer: PixelBuffer, mask: NDArray[np.bool_]) -> None:
    value = np.where(mask, INK, PAPER).astype(np.uint8)
    buffer.pixels[:, :, 0] = value
    buffer.pixels[:, :, 1] = value
    buffer.pixels[:, :, 2] = value
    buffer.pixels[:, :, 3] = 255


def process_logo(
    buffer: PixelBuffer,
    width: int,
    max_height: int = 180,
    threshold: Optional[int] = None,
    outline: bool = True,
    thickness: int = 1,
) -> PixelBuffer:
    """Run the full logo pipeline and return a printable black/white buffer.

    Args:
        buffer: Decoded logo, consumed by the pipeline
        width: Target width in dots (paper dot width)
        max_height: Height cap in dots
        threshold: Fixed threshold, or None for Otsu
        outline: Reduce shapes to their outline
        thickness: Outline thickness (1 or more)
    """
    buffer = crop_whitespace(buffer)
    buffer = scale_to_width(buffer, width, max_height)
    if threshold is None:
        threshold = otsu_threshold(buffer)
        logger.debug(f"Otsu threshold: {threshold}")
    buffer = binarize(buffer, threshold)
    buffer = auto_invert(buffer)
    buffer = despeckle(buffer)
    if outline:
        buffer = extract_outline(buffer, thickness)
    return buffer
