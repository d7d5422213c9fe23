"""Interface definitions for the capture and OCR boundaries.

Concrete providers and engines implement these so the pipeline can be
driven by fakes in tests.
"""

from src.interfaces.capture import (
    CaptureError,
    CaptureFatal,
    CaptureProvider,
    CaptureUnavailable,
    RawFrame,
)
from src.interfaces.ocr import OcrEngine, OcrError, TextLine, WordRegion

__all__ = [
    "CaptureError",
    "CaptureFatal",
    "CaptureProvider",
    "CaptureUnavailable",
    "OcrEngine",
    "OcrError",
    "RawFrame",
    "TextLine",
    "WordRegion",
]
