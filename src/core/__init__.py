"""Core encounter detection logic.

This package provides:
- EncounterEngine: Samples frames and folds them into mode transitions
- CycleResult: Outcome of one polling cycle
- fold_observations: The transition rule applied to a state
- EncounterLoop: Sequential driver with external mode control
"""

from src.core.engine import (
    CycleResult,
    EncounterEngine,
    FilterOptions,
    fold_observations,
    pick_longest,
)
from src.core.loop import EncounterLoop

__all__ = [
    "CycleResult",
    "EncounterEngine",
    "EncounterLoop",
    "FilterOptions",
    "fold_observations",
    "pick_longest",
]
