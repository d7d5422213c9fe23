"""Encounter state machine.

Each polling cycle samples several frames through the pipeline
capture -> tensor -> OCR -> candidate filter, folds the per-frame
observations into at most one mode transition, and persists the state.

Transition rules:
- Init / Pause: nothing is captured; the state is saved unchanged and
  the cycle still waits out the inter-cycle sleep.
- Encounter -> Walk: only when every sampled observation is empty.
- Walk -> Encounter: when any observation is non-empty. The longest
  observation is recorded; on ties the latest sample wins.

Example:
    >>> engine = EncounterEngine(normalizer, extractor, persistence)
    >>> state = persistence.load_state()
    >>> result = engine.run_cycle(state)
    >>> print(result.previous_mode, "->", result.mode)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from src.interfaces.ocr import OcrError
from src.memory.persistence import JsonStatePersistence
from src.models.state import EngineState, Mode
from src.vision.capture import FrameNormalizer
from src.vision.filters import (
    BANNED_WORDS,
    LEVEL_MARKER,
    MERGE_ARTIFACT,
    MIN_NAME_LENGTH,
    filter_candidates,
)
from src.vision.ocr import TextExtractor
from src.vision.tensor import to_tensor

logger = logging.getLogger(__name__)

# Frames per detection window; a cycle samples one fewer than this.
ENCOUNTER_DETECT_FRAMES = 4

# Pause after each batch of frames
SLEEP_TIME_MS = 400


@dataclass
class FilterOptions:
    """Candidate filter parameters."""

    marker: str = LEVEL_MARKER
    banned_words: tuple[str, ...] = BANNED_WORDS
    strip_fragment: str = MERGE_ARTIFACT
    min_length: int = MIN_NAME_LENGTH


@dataclass
class CycleResult:
    """Outcome of one polling cycle.

    Attributes:
        previous_mode: Mode read at the start of the cycle.
        mode: Mode after folding.
        observations: Candidate names per sampled frame.
        chosen: Observation recorded on a Walk -> Encounter transition.
    """

    previous_mode: Mode
    mode: Mode
    observations: list[list[str]] = field(default_factory=list)
    chosen: list[str] | None = None

    @property
    def transitioned(self) -> bool:
        return self.previous_mode != self.mode


def pick_longest(observations: Sequence[Sequence[str]]) -> list[str]:
    """Longest non-empty observation; the latest one wins ties."""
    chosen: list[str] = []
    for names in observations:
        if names and len(names) >= len(chosen):
            chosen = list(names)
    return chosen


def fold_observations(state: EngineState, observations: Sequence[Sequence[str]]) -> list[str] | None:
    """Apply one cycle's observations to the state.

    Args:
        state: State to mutate in place.
        observations: Candidate names per sampled frame.

    Returns:
        The recorded observation on a Walk -> Encounter transition,
        otherwise None.
    """
    if state.mode is Mode.ENCOUNTER:
        if all(not names for names in observations):
            state.mode = Mode.WALK
        return None

    if state.mode is Mode.WALK and any(observations):
        chosen = pick_longest(observations)
        state.record_encounter(chosen)
        return chosen

    return None


class EncounterEngine:
    """Runs polling cycles against an explicitly passed state.

    The engine holds no state of its own beyond its collaborators; the
    caller owns the ``EngineState`` and threads it through each cycle.
    """

    def __init__(
        self,
        normalizer: FrameNormalizer,
        extractor: TextExtractor,
        persistence: JsonStatePersistence,
        *,
        detect_frames: int = ENCOUNTER_DETECT_FRAMES,
        cycle_sleep_ms: float = SLEEP_TIME_MS,
        filter_options: FilterOptions | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the engine.

        Args:
            normalizer: Source of normalized frames.
            extractor: OCR text extractor.
            persistence: Where the state is saved after each cycle.
            detect_frames: Detection window; ``detect_frames - 1`` frames
                are sampled per cycle.
            cycle_sleep_ms: Sleep after each batch of frames.
            filter_options: Candidate filter parameters.
            sleep: Sleep function, replaceable in tests.
        """
        if detect_frames < 2:
            raise ValueError(f"detect_frames must be at least 2, got {detect_frames}")

        self._normalizer = normalizer
        self._extractor = extractor
        self._persistence = persistence
        self._samples = detect_frames - 1
        self._cycle_sleep = cycle_sleep_ms / 1000.0
        self._filter = filter_options or FilterOptions()
        self._sleep = sleep

    @property
    def samples_per_cycle(self) -> int:
        return self._samples

    def observe_frame(self) -> list[str]:
        """Capture one frame and return its candidate names."""
        image = self._normalizer.capture()
        tensor = to_tensor(image)
        lines = self._extractor.extract_lines(tensor)
        names = filter_candidates(
            lines,
            marker=self._filter.marker,
            banned_words=self._filter.banned_words,
            strip_fragment=self._filter.strip_fragment,
            min_length=self._filter.min_length,
        )
        logger.debug("Frame candidates: %s", names)
        return names

    def sample_cycle(self) -> list[list[str]]:
        """Sample the cycle's frames back to back, then sleep.

        A frame whose OCR fails counts as an empty observation. If every
        frame fails, the last OCR error is raised.

        Raises:
            OcrError: If OCR failed on every sampled frame.
        """
        observations: list[list[str]] = []
        last_error: OcrError | None = None
        failures = 0

        for _ in range(self._samples):
            try:
                observations.append(self.observe_frame())
            except OcrError as e:
                failures += 1
                last_error = e
                logger.warning("OCR failed on frame, treating as empty: %s", e)
                observations.append([])

        if last_error is not None and failures == self._samples:
            raise last_error

        self._sleep(self._cycle_sleep)
        return observations

    def run_cycle(self, state: EngineState) -> CycleResult:
        """Run one polling cycle and persist the state.

        Args:
            state: Engine state, mutated in place.

        Returns:
            What happened during the cycle.
        """
        previous_mode = state.mode
        result = CycleResult(previous_mode=previous_mode, mode=previous_mode)

        if not previous_mode.is_idle:
            result.observations = self.sample_cycle()
            result.chosen = fold_observations(state, result.observations)
            result.mode = state.mode

        if result.chosen is not None:
            logger.info(
                "[ENCOUNTER] %s (+%d, total=%d)",
                ", ".join(result.chosen),
                len(result.chosen),
                state.encounters,
            )
        elif result.transitioned:
            logger.info("[ENCOUNTER] mode %s -> %s", previous_mode.value, state.mode.value)

        self._persistence.save_state(state)
        if previous_mode.is_idle:
            self._sleep(self._cycle_sleep)
        return result
