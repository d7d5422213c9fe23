"""Screen capture and frame normalization for encounter detection.

This module pulls raw frames from the primary display and turns them into
the canonical image the OCR pipeline works on:

- Corrects BGRA byte order to RGBA, honouring padded row strides
- Crops to the region where encounter badges render
- Converts to grayscale and darkens for contrast

Example:
    >>> from src.vision.capture import FrameNormalizer, MSSCaptureProvider
    >>>
    >>> with FrameNormalizer(MSSCaptureProvider()) as normalizer:
    ...     image = normalizer.capture()
    ...     print(f"Captured {image.width}x{image.height}")
"""

from __future__ import annotations

import logging
import sys
import time

import mss
import mss.exception
import numpy as np
from PIL import Image

from src.interfaces.capture import (
    CaptureError,
    CaptureFatal,
    CaptureProvider,
    CaptureUnavailable,
    RawFrame,
)
from src.vision.tensor import LayoutError

logger = logging.getLogger(__name__)

# Canonical channel count (RGBA)
CHANNELS = 4


class MSSCaptureProvider(CaptureProvider):
    """Capture provider backed by mss.

    Attributes:
        monitor: mss monitor index. 1 is the primary display.
    """

    def __init__(self, monitor: int = 1) -> None:
        self.monitor = monitor
        self._sct: mss.base.MSSBase | None = None
        self._region: dict[str, int] | None = None

    def open(self) -> None:
        if self._sct is not None:
            return
        try:
            sct = mss.mss()
        except mss.exception.ScreenShotError as e:
            raise CaptureFatal(f"Couldn't begin capture: {e}") from e

        monitors = sct.monitors
        if self.monitor >= len(monitors):
            sct.close()
            raise CaptureFatal(f"Couldn't find display #{self.monitor}")

        self._sct = sct
        self._region = dict(monitors[self.monitor])
        logger.info(
            "Capture opened on display #%d (%dx%d)",
            self.monitor,
            self._region["width"],
            self._region["height"],
        )

    def grab(self) -> RawFrame | None:
        if self._sct is None or self._region is None:
            raise CaptureFatal("Capture provider is not open")
        try:
            shot = self._sct.grab(self._region)
        except mss.exception.ScreenShotError as e:
            raise CaptureFatal(f"Screen grab failed: {e}") from e
        return RawFrame(data=bytes(shot.raw), width=shot.width, height=shot.height)

    def close(self) -> None:
        if self._sct is not None:
            self._sct.close()
            self._sct = None
            self._region = None
            logger.info("Capture closed")


def row_stride(buffer_len: int, width: int, height: int, platform: str | None = None) -> int:
    """Bytes per row of a raw frame.

    macOS buffers are reported unpadded; elsewhere the stride is derived
    from the buffer size, which includes any row padding.
    """
    platform = platform or sys.platform
    if platform == "darwin":
        return width * CHANNELS
    if height <= 0:
        raise LayoutError(f"Invalid frame height: {height}")
    return buffer_len // height


def to_canonical_rgba(frame: RawFrame, platform: str | None = None) -> Image.Image:
    """Convert a raw BGRA frame to an RGBA image with opaque alpha.

    Raises:
        LayoutError: If the buffer is too small for the declared size.
    """
    width, height = frame.width, frame.height
    stride = row_stride(len(frame.data), width, height, platform)
    if width <= 0 or stride < width * CHANNELS or len(frame.data) < stride * height:
        raise LayoutError(
            f"Frame buffer of {len(frame.data)} bytes does not fit "
            f"{width}x{height} with stride {stride}"
        )

    raw = np.frombuffer(frame.data, dtype=np.uint8, count=stride * height)
    bgra = raw.reshape(height, stride)[:, : width * CHANNELS].reshape(height, width, CHANNELS)

    rgba = np.empty_like(bgra)
    rgba[..., 0] = bgra[..., 2]
    rgba[..., 1] = bgra[..., 1]
    rgba[..., 2] = bgra[..., 0]
    rgba[..., 3] = 255
    return Image.fromarray(rgba)


def crop_box(
    width: int,
    height: int,
    offset_x: int = 150,
    offset_y: int = 50,
    bottom_margin: int = 150,
) -> tuple[int, int, int, int]:
    """Region of interest as a PIL box, clamped to the frame.

    The region starts at the offset, spans the full capture width and half
    the capture height minus the margin.
    """
    right = min(width, offset_x + width)
    bottom = min(height, offset_y + height // 2 - bottom_margin)
    return (offset_x, offset_y, right, bottom)


def adjust_brightness(image: Image.Image, shift: int) -> Image.Image:
    """Add a constant to every grayscale value, saturating at 0 and 255."""
    return image.point(lambda v: max(0, min(255, v + shift)))


class FrameNormalizer:
    """Blocking capture of one normalized frame at a time.

    The provider handle is acquired once in ``open()`` and reused by every
    ``capture()`` call until ``close()``.

    Example:
        >>> normalizer = FrameNormalizer(provider, brightness=-50)
        >>> normalizer.open()
        >>> image = normalizer.capture()
        >>> normalizer.close()
    """

    def __init__(
        self,
        provider: CaptureProvider,
        *,
        crop_x: int = 150,
        crop_y: int = 50,
        crop_bottom_margin: int = 150,
        brightness: int = -50,
        frame_rate: int = 60,
        max_not_ready_retries: int = 600,
        platform: str | None = None,
    ) -> None:
        """Initialize the normalizer.

        Args:
            provider: Capture provider to pull frames from.
            crop_x: Left offset of the region of interest.
            crop_y: Top offset of the region of interest.
            crop_bottom_margin: Subtracted from half the capture height.
            brightness: Grayscale shift applied after conversion.
            frame_rate: Display refresh rate; one frame interval is slept
                between not-ready retries.
            max_not_ready_retries: Spin bound before giving up.
            platform: Platform override for stride computation.
        """
        self._provider = provider
        self._crop_x = crop_x
        self._crop_y = crop_y
        self._crop_bottom_margin = crop_bottom_margin
        self._brightness = brightness
        self._frame_interval = 1.0 / frame_rate
        self._max_retries = max_not_ready_retries
        self._platform = platform
        self._opened = False

    @property
    def frame_interval(self) -> float:
        """Seconds slept between not-ready retries."""
        return self._frame_interval

    def open(self) -> None:
        if not self._opened:
            self._provider.open()
            self._opened = True

    def close(self) -> None:
        if self._opened:
            self._provider.close()
            self._opened = False

    def __enter__(self) -> FrameNormalizer:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def grab_raw(self) -> RawFrame:
        """Pull a fresh raw frame, spinning while the provider is not ready.

        Raises:
            CaptureFatal: On any failure other than not-ready, or when the
                retry bound is exhausted.
        """
        self.open()

        for attempt in range(self._max_retries + 1):
            try:
                frame = self._provider.grab()
            except CaptureUnavailable:
                frame = None
            except CaptureFatal:
                raise
            except CaptureError as e:
                raise CaptureFatal(str(e)) from e

            if frame is not None:
                return frame

            logger.debug("Frame not ready (attempt %d), spinning", attempt + 1)
            time.sleep(self._frame_interval)

        raise CaptureFatal(f"No frame ready after {self._max_retries} retries")

    def normalize(self, frame: RawFrame) -> Image.Image:
        """Turn a raw frame into the cropped, darkened grayscale image.

        Raises:
            LayoutError: If the raw buffer does not match its size.
            CaptureFatal: If the display is too small for the region.
        """
        rgba = to_canonical_rgba(frame, self._platform)
        box = crop_box(
            frame.width,
            frame.height,
            self._crop_x,
            self._crop_y,
            self._crop_bottom_margin,
        )
        left, top, right, bottom = box
        if right <= left or bottom <= top:
            raise CaptureFatal(
                f"Display {frame.width}x{frame.height} too small for region {box}"
            )

        gray = rgba.crop(box).convert("L")
        return adjust_brightness(gray, self._brightness)

    def capture(self) -> Image.Image:
        """Capture and normalize one frame."""
        return self.normalize(self.grab_raw())
