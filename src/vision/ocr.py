"""OCR pipeline: word detection, line grouping and line recognition.

This module provides:
- TesseractOcrEngine: the three OCR stages implemented with pytesseract
- TextExtractor: drives the stages in order for one frame tensor

Example:
    >>> from src.vision.ocr import TesseractOcrEngine, TextExtractor
    >>> extractor = TextExtractor(TesseractOcrEngine())
    >>> for line in extractor.extract_lines(tensor):
    ...     print(str(line))
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import pytesseract
from PIL import Image

from src.interfaces.ocr import OcrEngine, OcrError, TextLine, WordRegion

logger = logging.getLogger(__name__)

# Tesseract layout level for individual words
WORD_LEVEL = 5

# Page segmentation mode "single text line", used per recognized line
LINE_PSM_CONFIG = "--psm 7"

# Pixels added around a line before recognition
LINE_PADDING = 4

_TESSERACT_ERRORS = (
    pytesseract.TesseractError,
    pytesseract.TesseractNotFoundError,
    RuntimeError,
)


class TesseractOcrEngine(OcrEngine):
    """OCR engine backed by pytesseract.

    Detection uses ``image_to_data`` word boxes; lines are grouped from
    the layout indices Tesseract reports, and each line is recognized on
    its own crop in single-line mode.
    """

    def __init__(self, language: str = "eng", tesseract_cmd: str | None = None) -> None:
        """Initialize the OCR engine.

        Args:
            language: OCR language code (default: "eng").
            tesseract_cmd: Optional path to the tesseract binary.
        """
        self._language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        if self._check_tesseract():
            logger.info("TesseractOcrEngine initialized (lang=%s)", language)
        else:
            logger.warning("tesseract binary not available, OCR calls will fail")

    def _check_tesseract(self) -> bool:
        """Check if the tesseract binary is reachable."""
        try:
            pytesseract.get_tesseract_version()
            return True
        except Exception:
            return False

    def prepare_input(self, tensor: np.ndarray) -> Image.Image:
        if tensor.ndim != 3 or tensor.shape[0] not in (1, 3):
            raise OcrError(f"Expected a CHW tensor with 1 or 3 channels, got {tensor.shape}")

        hwc = np.clip(np.rint(tensor.transpose(1, 2, 0) * 255.0), 0, 255).astype(np.uint8)
        if hwc.shape[2] == 1:
            return Image.fromarray(hwc[:, :, 0])
        return Image.fromarray(hwc)

    def detect_words(self, ocr_input: Image.Image) -> list[WordRegion]:
        try:
            data = pytesseract.image_to_data(
                ocr_input,
                lang=self._language,
                output_type=pytesseract.Output.DICT,
            )
        except _TESSERACT_ERRORS as e:
            raise OcrError(f"Word detection failed: {e}") from e

        line_ids: dict[tuple[int, int, int], int] = {}
        words = []
        for i in range(len(data["text"])):
            if int(data["level"][i]) != WORD_LEVEL or not str(data["text"][i]).strip():
                continue
            width = int(data["width"][i])
            height = int(data["height"][i])
            if width <= 0 or height <= 0:
                continue

            key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
            line_id = line_ids.setdefault(key, len(line_ids))
            words.append(
                WordRegion(
                    x=int(data["left"][i]),
                    y=int(data["top"][i]),
                    width=width,
                    height=height,
                    line=line_id,
                )
            )

        logger.debug("Detected %d word regions", len(words))
        return words

    def find_text_lines(
        self,
        ocr_input: Image.Image,
        words: Sequence[WordRegion],
    ) -> list[list[WordRegion]]:
        grouped: dict[int, list[WordRegion]] = {}
        for word in words:
            grouped.setdefault(word.line, []).append(word)

        lines = [sorted(line, key=lambda w: w.x) for line in grouped.values()]
        lines.sort(key=lambda line: (min(w.y for w in line), line[0].x))
        return lines

    def recognize_text(
        self,
        ocr_input: Image.Image,
        lines: Sequence[Sequence[WordRegion]],
    ) -> list[TextLine | None]:
        results: list[TextLine | None] = []
        for line in lines:
            if not line:
                results.append(None)
                continue

            box = (
                max(0, min(w.x for w in line) - LINE_PADDING),
                max(0, min(w.y for w in line) - LINE_PADDING),
                min(ocr_input.width, max(w.right for w in line) + LINE_PADDING),
                min(ocr_input.height, max(w.bottom for w in line) + LINE_PADDING),
            )
            try:
                text = pytesseract.image_to_string(
                    ocr_input.crop(box),
                    lang=self._language,
                    config=LINE_PSM_CONFIG,
                )
            except _TESSERACT_ERRORS as e:
                raise OcrError(f"Text recognition failed: {e}") from e

            words = text.split()
            results.append(TextLine(words) if words else None)

        return results


class TextExtractor:
    """Runs the OCR stages on a frame tensor. No caching between frames."""

    def __init__(self, engine: OcrEngine) -> None:
        self._engine = engine

    def extract_lines(self, tensor: np.ndarray) -> list[TextLine]:
        """Recognize the text lines in a CHW tensor.

        Args:
            tensor: CHW float32 tensor scaled to [0, 1].

        Returns:
            Recognized lines in reading order. Lines with no text are dropped.

        Raises:
            OcrError: If any stage fails.
        """
        ocr_input = self._engine.prepare_input(tensor)
        word_regions = self._engine.detect_words(ocr_input)
        line_regions = self._engine.find_text_lines(ocr_input, word_regions)
        line_texts = self._engine.recognize_text(ocr_input, line_regions)
        return [line for line in line_texts if line is not None]
