"""Driver loop for the encounter engine.

Runs polling cycles back to back until the process is terminated or a
cycle limit is reached. Mode changes requested from outside (for example
a key handler) are applied between cycles, so every cycle reads its mode
fresh.

Example:
    >>> loop = EncounterLoop(engine, state)
    >>> loop.resume()
    >>> loop.run(max_cycles=10)
"""

from __future__ import annotations

import logging
import threading

from src.core.engine import CycleResult, EncounterEngine
from src.models.state import EngineState, Mode

logger = logging.getLogger(__name__)


class EncounterLoop:
    """Sequential cycle runner with an external mode-control hook.

    Attributes:
        state: The owned engine state.
        cycles: Number of cycles completed.
    """

    def __init__(self, engine: EncounterEngine, state: EngineState) -> None:
        self._engine = engine
        self.state = state
        self.cycles = 0
        self._pending_mode: Mode | None = None
        self._lock = threading.Lock()

    def set_mode(self, mode: Mode) -> None:
        """Request a mode change, applied before the next cycle."""
        with self._lock:
            self._pending_mode = mode

    def pause(self) -> None:
        """Stop capturing from the next cycle on."""
        self.set_mode(Mode.PAUSE)

    def resume(self) -> None:
        """Start walking if idle. Active modes are left alone."""
        with self._lock:
            current = self._pending_mode or self.state.mode
            if current.is_idle:
                self._pending_mode = Mode.WALK

    def _apply_pending_mode(self) -> None:
        with self._lock:
            pending, self._pending_mode = self._pending_mode, None
        if pending is not None and pending != self.state.mode:
            logger.info("Mode set externally: %s -> %s", self.state.mode.value, pending.value)
            self.state.mode = pending

    def step(self) -> CycleResult:
        """Run a single cycle."""
        self._apply_pending_mode()
        result = self._engine.run_cycle(self.state)
        self.cycles += 1
        return result

    def run(self, max_cycles: int | None = None) -> int:
        """Run cycles until ``max_cycles`` is reached, or forever.

        Errors from a cycle propagate; there is no restart logic.

        Returns:
            Number of cycles run by this call.
        """
        logger.info("Encounter loop started in mode %s", self.state.mode.label)
        ran = 0
        while max_cycles is None or ran < max_cycles:
            self.step()
            ran += 1
        logger.info("Encounter loop finished after %d cycles", ran)
        return ran
