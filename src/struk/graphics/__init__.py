"""Logo image processing for STRUK."""

from struk.graphics.logo import (
    PixelBuffer,
    auto_invert,
    binarize,
    crop_whitespace,
    decode_logo,
    despeckle,
    extract_outline,
    otsu_threshold,
    process_logo,
    scale_to_width,
)

__all__ = [
    "PixelBuffer",
    "decode_logo",
    "crop_whitespace",
    "otsu_threshold",
    "binarize",
    "auto_invert",
    "despeckle",
    "extract_outline",
    "scale_to_width",
    "process_logo",
]
