"""Shared helper utilities for CLI commands."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from src.cli.options import LogFormat
from src.config.loader import Config, load_config
from src.core.engine import EncounterEngine, FilterOptions
from src.memory.persistence import JsonStatePersistence
from src.vision.capture import FrameNormalizer, MSSCaptureProvider
from src.vision.ocr import TesseractOcrEngine, TextExtractor

logger = logging.getLogger(__name__)


class _JSONLogFormatter(logging.Formatter):
    """Compact JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=True)


def _configure_logging(
    level: str = "INFO",
    log_format: str = LogFormat.READABLE.value,
) -> None:
    """Configure process-wide logging."""
    normalized_level = level.upper()
    resolved_level = getattr(logging, normalized_level, logging.INFO)
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, "_encounter_handler", False)]

    handler = logging.StreamHandler()
    handler._encounter_handler = True  # type: ignore[attr-defined]
    if log_format == LogFormat.JSON.value:
        formatter: logging.Formatter = _JSONLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(resolved_level)

    # Pillow logs every plugin import at DEBUG.
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _load_command_config(args: argparse.Namespace) -> Config:
    """Load config and reconfigure logging from it."""
    config = load_config(args.config)
    _configure_logging(
        level=str(config.logging.level),
        log_format=str(args.log_format or config.logging.format),
    )
    return config


def _resolve_persistence(args: argparse.Namespace, config: Config) -> JsonStatePersistence:
    """State file from ``--state`` or the config."""
    state_path = Path(args.state) if args.state else Path(config.persistence.state_path)
    return JsonStatePersistence(state_path)


def _build_normalizer(config: Config) -> FrameNormalizer:
    capture = config.capture
    return FrameNormalizer(
        MSSCaptureProvider(monitor=capture.monitor),
        crop_x=capture.crop_x,
        crop_y=capture.crop_y,
        crop_bottom_margin=capture.crop_bottom_margin,
        brightness=capture.brightness,
        frame_rate=capture.frame_rate,
        max_not_ready_retries=capture.max_not_ready_retries,
    )


def _build_engine(
    config: Config,
    normalizer: FrameNormalizer,
    persistence: JsonStatePersistence,
) -> EncounterEngine:
    """Wire the OCR pipeline and state machine from config."""
    detection = config.detection
    extractor = TextExtractor(
        TesseractOcrEngine(
            language=config.ocr.language,
            tesseract_cmd=config.ocr.tesseract_cmd,
        )
    )
    return EncounterEngine(
        normalizer,
        extractor,
        persistence,
        detect_frames=detection.detect_frames,
        cycle_sleep_ms=detection.cycle_sleep_ms,
        filter_options=FilterOptions(
            marker=detection.marker,
            banned_words=tuple(detection.banned_words),
            strip_fragment=detection.strip_fragment,
            min_length=detection.min_length,
        ),
    )
