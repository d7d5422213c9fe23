"""Tests for the OCR pipeline.

Note: pytesseract calls are mocked, so no tesseract binary is required.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, call, patch

import numpy as np
import pytesseract
import pytest
from PIL import Image

from src.interfaces.ocr import OcrEngine, OcrError, TextLine, WordRegion
from src.vision.ocr import TesseractOcrEngine, TextExtractor


def tesseract_data(rows: list[tuple[int, int, int, int, int, int, int, int, str]]) -> dict[str, list[Any]]:
    """Build an image_to_data dict from (level, block, par, line, left, top, width, height, text)."""
    keys = ["level", "block_num", "par_num", "line_num", "left", "top", "width", "height", "text"]
    data: dict[str, list[Any]] = {key: [] for key in keys}
    for row in rows:
        for key, value in zip(keys, row, strict=True):
            data[key].append(value)
    data["conf"] = [-1 if row[0] != 5 else 90 for row in rows]
    return data


BADGE_DATA = tesseract_data(
    [
        (1, 0, 0, 0, 0, 0, 200, 100, ""),
        (2, 1, 0, 0, 0, 0, 200, 100, ""),
        (4, 1, 1, 1, 0, 5, 120, 12, ""),
        (5, 1, 1, 1, 60, 5, 50, 12, "Pidgey"),
        (5, 1, 1, 1, 10, 5, 40, 12, "Lv.12"),
        (4, 1, 1, 2, 0, 40, 60, 12, ""),
        (5, 1, 1, 2, 10, 40, 30, 12, "Route"),
        (5, 1, 1, 2, 50, 40, 0, 12, "ghost"),
        (5, 1, 1, 2, 60, 40, 10, 12, "  "),
    ]
)


@pytest.fixture
def engine() -> TesseractOcrEngine:
    with patch("src.vision.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
        return TesseractOcrEngine()


class TestTextLine:
    """Tests for TextLine."""

    def test_str_joins_words(self) -> None:
        assert str(TextLine(["Lv.12", "Pidgey"])) == "Lv.12 Pidgey"

    def test_empty_words_dropped(self) -> None:
        line = TextLine(["Pidgey", ""])
        assert list(line.words()) == ["Pidgey"]
        assert len(line) == 1

    def test_equality(self) -> None:
        assert TextLine(["a", "b"]) == TextLine(["a", "b"])
        assert TextLine(["a"]) != TextLine(["b"])


class TestTesseractEngineInit:
    """Tests for engine initialization."""

    def test_missing_binary_only_warns(self) -> None:
        with patch(
            "src.vision.ocr.pytesseract.get_tesseract_version",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            engine = TesseractOcrEngine()
        assert engine is not None

    def test_custom_tesseract_cmd(self) -> None:
        original = pytesseract.pytesseract.tesseract_cmd
        try:
            with patch("src.vision.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
                TesseractOcrEngine(tesseract_cmd="/opt/tesseract/bin/tesseract")
            assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"
        finally:
            pytesseract.pytesseract.tesseract_cmd = original


class TestPrepareInput:
    """Tests for tensor to image conversion."""

    def test_three_channel_tensor(self, engine: TesseractOcrEngine) -> None:
        tensor = np.ones((3, 4, 5), dtype=np.float32)
        image = engine.prepare_input(tensor)
        assert image.mode == "RGB"
        assert image.size == (5, 4)
        assert image.getpixel((0, 0)) == (255, 255, 255)

    def test_single_channel_tensor(self, engine: TesseractOcrEngine) -> None:
        tensor = np.full((1, 2, 3), 0.2, dtype=np.float32)
        image = engine.prepare_input(tensor)
        assert image.mode == "L"
        assert image.getpixel((0, 0)) == 51

    def test_bad_channel_count_raises(self, engine: TesseractOcrEngine) -> None:
        with pytest.raises(OcrError):
            engine.prepare_input(np.zeros((4, 2, 2), dtype=np.float32))

    def test_two_dimensional_raises(self, engine: TesseractOcrEngine) -> None:
        with pytest.raises(OcrError):
            engine.prepare_input(np.zeros((2, 2), dtype=np.float32))


class TestDetectWords:
    """Tests for word detection."""

    @patch("src.vision.ocr.pytesseract.image_to_data", return_value=BADGE_DATA)
    def test_only_word_level_boxes_kept(self, mock_data: MagicMock, engine: TesseractOcrEngine) -> None:
        words = engine.detect_words(Image.new("RGB", (200, 100)))

        assert len(words) == 3
        assert [(w.x, w.y) for w in words] == [(60, 5), (10, 5), (10, 40)]

    @patch("src.vision.ocr.pytesseract.image_to_data", return_value=BADGE_DATA)
    def test_line_ids_follow_layout(self, mock_data: MagicMock, engine: TesseractOcrEngine) -> None:
        words = engine.detect_words(Image.new("RGB", (200, 100)))
        assert [w.line for w in words] == [0, 0, 1]

    @patch("src.vision.ocr.pytesseract.image_to_data")
    def test_tesseract_error_wrapped(self, mock_data: MagicMock, engine: TesseractOcrEngine) -> None:
        mock_data.side_effect = pytesseract.TesseractError(1, "bad image")
        with pytest.raises(OcrError):
            engine.detect_words(Image.new("RGB", (10, 10)))


class TestFindTextLines:
    """Tests for line grouping."""

    def test_groups_and_sorts(self, engine: TesseractOcrEngine) -> None:
        words = [
            WordRegion(60, 5, 50, 12, line=0),
            WordRegion(10, 40, 30, 12, line=1),
            WordRegion(10, 5, 40, 12, line=0),
        ]
        lines = engine.find_text_lines(Image.new("RGB", (200, 100)), words)

        assert len(lines) == 2
        assert [w.x for w in lines[0]] == [10, 60]
        assert [w.y for w in lines[1]] == [40]

    def test_lines_in_reading_order(self, engine: TesseractOcrEngine) -> None:
        words = [WordRegion(0, 50, 10, 10, line=0), WordRegion(0, 5, 10, 10, line=1)]
        lines = engine.find_text_lines(Image.new("RGB", (100, 100)), words)
        assert [line[0].y for line in lines] == [5, 50]

    def test_no_words(self, engine: TesseractOcrEngine) -> None:
        assert engine.find_text_lines(Image.new("RGB", (10, 10)), []) == []


class TestRecognizeText:
    """Tests for per-line recognition."""

    @patch("src.vision.ocr.pytesseract.image_to_string")
    def test_recognizes_each_line(self, mock_string: MagicMock, engine: TesseractOcrEngine) -> None:
        mock_string.side_effect = ["Lv.12 Pidgey\n", "  \n"]
        lines = [
            [WordRegion(10, 5, 40, 12), WordRegion(60, 5, 50, 12)],
            [WordRegion(10, 40, 30, 12)],
        ]

        result = engine.recognize_text(Image.new("RGB", (200, 100)), lines)

        assert result == [TextLine(["Lv.12", "Pidgey"]), None]
        assert mock_string.call_count == 2
        assert mock_string.call_args.kwargs["config"] == "--psm 7"

    @patch("src.vision.ocr.pytesseract.image_to_string", return_value="Onix")
    def test_crop_clamped_to_image(self, mock_string: MagicMock, engine: TesseractOcrEngine) -> None:
        lines = [[WordRegion(0, 0, 20, 20)]]
        engine.recognize_text(Image.new("RGB", (20, 20)), lines)

        cropped = mock_string.call_args.args[0]
        assert cropped.size == (20, 20)

    def test_empty_line_is_none(self, engine: TesseractOcrEngine) -> None:
        assert engine.recognize_text(Image.new("RGB", (10, 10)), [[]]) == [None]

    @patch("src.vision.ocr.pytesseract.image_to_string")
    def test_tesseract_error_wrapped(self, mock_string: MagicMock, engine: TesseractOcrEngine) -> None:
        mock_string.side_effect = RuntimeError("Tesseract process timeout")
        with pytest.raises(OcrError):
            engine.recognize_text(Image.new("RGB", (50, 50)), [[WordRegion(0, 0, 10, 10)]])


class TestTextExtractor:
    """Tests for the three-stage driver."""

    def test_stages_called_in_order(self) -> None:
        engine = MagicMock(spec=OcrEngine)
        engine.prepare_input.return_value = "input"
        engine.detect_words.return_value = ["words"]
        engine.find_text_lines.return_value = [["line"]]
        engine.recognize_text.return_value = [TextLine(["Lv.5", "Eevee"]), None]

        tensor = np.zeros((3, 2, 2), dtype=np.float32)
        lines = TextExtractor(engine).extract_lines(tensor)

        assert lines == [TextLine(["Lv.5", "Eevee"])]
        assert engine.mock_calls == [
            call.prepare_input(tensor),
            call.detect_words("input"),
            call.find_text_lines("input", ["words"]),
            call.recognize_text("input", [["line"]]),
        ]

    def test_stage_failure_propagates(self) -> None:
        engine = MagicMock(spec=OcrEngine)
        engine.detect_words.side_effect = OcrError("detector crashed")

        with pytest.raises(OcrError):
            TextExtractor(engine).extract_lines(np.zeros((3, 2, 2), dtype=np.float32))
        engine.recognize_text.assert_not_called()

    @patch("src.vision.ocr.pytesseract.image_to_string", return_value="Lv.12 Pidgey")
    @patch("src.vision.ocr.pytesseract.image_to_data", return_value=BADGE_DATA)
    def test_with_tesseract_engine(
        self,
        mock_data: MagicMock,
        mock_string: MagicMock,
        engine: TesseractOcrEngine,
    ) -> None:
        tensor = np.zeros((3, 100, 200), dtype=np.float32)
        lines = TextExtractor(engine).extract_lines(tensor)

        assert len(lines) == 2
        assert str(lines[0]) == "Lv.12 Pidgey"
