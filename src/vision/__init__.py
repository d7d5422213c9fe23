"""Vision package: from screen pixels to creature names.

This package provides:
- FrameNormalizer / MSSCaptureProvider: Capture and normalize frames
- to_tensor: CHW float tensor conversion for OCR
- TesseractOcrEngine / TextExtractor: Three-stage OCR
- filter_candidates: Creature-name extraction from OCR lines
"""

from src.vision.capture import FrameNormalizer, MSSCaptureProvider
from src.vision.filters import filter_candidates
from src.vision.ocr import TesseractOcrEngine, TextExtractor
from src.vision.tensor import LayoutError, to_tensor

__all__ = [
    "FrameNormalizer",
    "LayoutError",
    "MSSCaptureProvider",
    "TesseractOcrEngine",
    "TextExtractor",
    "filter_candidates",
    "to_tensor",
]
