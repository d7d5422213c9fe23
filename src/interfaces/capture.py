"""Capture provider interface for pulling raw frames from a display."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RawFrame:
    """A raw frame as delivered by a capture provider.

    The pixel bytes are in the provider's native BGRA order. Rows may be
    padded, so the row stride can exceed ``width * 4``.
    """

    __slots__ = ("data", "width", "height")

    def __init__(self, data: bytes, width: int, height: int) -> None:
        """Initialize a raw frame.

        Args:
            data: Raw pixel bytes, BGRA, row-major.
            width: Frame width in pixels.
            height: Frame height in pixels.
        """
        self.data = data
        self.width = width
        self.height = height


class CaptureProvider(ABC):
    """Abstract interface for a primary-display capture session.

    Implementations own the display handle between ``open()`` and
    ``close()``. ``grab()`` returns None when the next frame is not ready
    yet, which is not an error.
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire the primary display capture handle.

        Raises:
            CaptureFatal: If no display can be captured.
        """
        ...

    @abstractmethod
    def grab(self) -> RawFrame | None:
        """Pull one frame.

        Returns:
            The frame, or None if no fresh frame is ready.

        Raises:
            CaptureUnavailable: Transient not-ready condition (retried).
            CaptureFatal: Any other capture failure.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the capture handle."""
        ...

    def __enter__(self) -> CaptureProvider:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class CaptureError(Exception):
    """Base error for capture failures."""

    pass


class CaptureUnavailable(CaptureError):
    """The provider has no fresh frame yet. Handled by retrying."""

    pass


class CaptureFatal(CaptureError):
    """Unrecoverable capture failure."""

    pass
