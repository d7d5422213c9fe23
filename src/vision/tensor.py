"""Conversion of normalized images to the OCR engine's tensor layout.

The OCR engine consumes a float32 tensor in channel-major (CHW) order
with values scaled to [0, 1].

Example:
    >>> from src.vision.tensor import to_tensor
    >>> tensor = to_tensor(image)
    >>> tensor.shape
    (3, 390, 1770)
"""

from __future__ import annotations

import numpy as np
from PIL import Image


class LayoutError(Exception):
    """Error raised when pixel data does not match its declared layout."""

    pass


def to_tensor(image: Image.Image) -> np.ndarray:
    """Convert an image to a contiguous CHW float32 tensor in [0, 1].

    The image is expanded to three channels first, so grayscale input
    yields three identical planes.

    Args:
        image: Normalized image.

    Returns:
        Array of shape (3, height, width), dtype float32.

    Raises:
        LayoutError: If the pixel buffer does not match the image size.
    """
    try:
        rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
    except (ValueError, OSError) as e:
        raise LayoutError(f"Cannot read pixel data: {e}") from e

    return hwc_to_chw(rgb, image.width, image.height)


def hwc_to_chw(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Transpose interleaved HWC uint8 pixels to planar CHW floats.

    Args:
        pixels: Array of shape (height, width, 3).
        width: Declared width.
        height: Declared height.

    Returns:
        Array of shape (3, height, width), dtype float32, in [0, 1].

    Raises:
        LayoutError: If the array shape disagrees with the declared size.
    """
    if pixels.ndim != 3 or pixels.shape != (height, width, 3):
        raise LayoutError(
            f"Pixel array shape {pixels.shape} does not match {height}x{width}x3"
        )

    # Materialize the transposed view before scaling; scaling a strided
    # view is much slower.
    chw = np.ascontiguousarray(pixels.transpose(2, 0, 1))
    return chw.astype(np.float32) / np.float32(255.0)
