"""OCR engine interface: word detection, line grouping and recognition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any

import numpy as np


class WordRegion:
    """Bounding box of a detected word."""

    __slots__ = ("x", "y", "width", "height", "line")

    def __init__(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        line: int = 0,
    ) -> None:
        """Initialize a word region.

        Args:
            x: Left coordinate of bounding box.
            y: Top coordinate of bounding box.
            width: Width of bounding box.
            height: Height of bounding box.
            line: Text line index assigned by the detector.
        """
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.line = line

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


class TextLine:
    """A recognized line of text, made of words."""

    __slots__ = ("_words",)

    def __init__(self, words: Sequence[str]) -> None:
        self._words = [w for w in words if w]

    def words(self) -> Iterator[str]:
        """Iterate over the recognized words in reading order."""
        return iter(self._words)

    def __iter__(self) -> Iterator[str]:
        return self.words()

    def __len__(self) -> int:
        return len(self._words)

    def __str__(self) -> str:
        return " ".join(self._words)

    def __repr__(self) -> str:
        return f"TextLine({self._words!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextLine):
            return NotImplemented
        return self._words == other._words


class OcrEngine(ABC):
    """Abstract interface for a three-stage OCR engine.

    Stages must be called in order: ``prepare_input`` ->
    ``detect_words`` -> ``find_text_lines`` -> ``recognize_text``.
    """

    @abstractmethod
    def prepare_input(self, tensor: np.ndarray) -> Any:
        """Convert a CHW float32 tensor in [0, 1] to the engine's input.

        Raises:
            OcrError: If the tensor cannot be prepared.
        """
        ...

    @abstractmethod
    def detect_words(self, ocr_input: Any) -> list[WordRegion]:
        """Detect word bounding regions.

        Raises:
            OcrError: If detection fails.
        """
        ...

    @abstractmethod
    def find_text_lines(
        self,
        ocr_input: Any,
        words: Sequence[WordRegion],
    ) -> list[list[WordRegion]]:
        """Group word regions into text lines, each ordered left to right.

        Raises:
            OcrError: If grouping fails.
        """
        ...

    @abstractmethod
    def recognize_text(
        self,
        ocr_input: Any,
        lines: Sequence[Sequence[WordRegion]],
    ) -> list[TextLine | None]:
        """Recognize the text of each line.

        Returns:
            One entry per input line; None where nothing was recognized.

        Raises:
            OcrError: If recognition fails.
        """
        ...


class OcrError(Exception):
    """Error raised when an OCR stage fails."""

    pass
