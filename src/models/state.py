"""Durable engine state: encounter tally, last encounter and mode."""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field


class Mode(str, Enum):
    """Logical phase of the engine.

    The value is the wire discriminant stored in the state file; ``label``
    is what gets shown to a user.
    """

    INIT = "Init"
    ENCOUNTER = "Encounter"
    WALK = "Walk"
    PAUSE = "Pause"

    @property
    def label(self) -> str:
        """Human-readable mode description."""
        if self is Mode.INIT:
            return "Init, Press S to start."
        return self.value

    @property
    def is_idle(self) -> bool:
        """True for modes in which no frames are captured."""
        return self in (Mode.INIT, Mode.PAUSE)

    def __str__(self) -> str:
        return self.label


class EngineState(BaseModel):
    """Session state persisted across restarts.

    ``EngineState()`` is the explicit fresh default.
    """

    encounters: int = Field(default=0, ge=0, description="Creatures detected so far")
    last_encounter: list[str] = Field(
        default_factory=list, description="Names from the latest encounter"
    )
    mode: Mode = Field(default=Mode.INIT, description="Current phase")
    mon_stats: dict[str, Annotated[int, Field(ge=0)]] = Field(
        default_factory=dict, description="Occurrences per creature name"
    )

    def record_encounter(self, names: list[str]) -> None:
        """Apply one Walk -> Encounter transition.

        Every name counts once per occurrence, duplicates included.
        """
        self.encounters += len(names)
        self.last_encounter = list(names)
        self.mode = Mode.ENCOUNTER
        for name in names:
            self.mon_stats[name] = self.mon_stats.get(name, 0) + 1

    def top_species(self, limit: int | None = None) -> list[tuple[str, int]]:
        """Per-species counts, most frequent first, ties by name.

        Raises:
            ValueError: If ``limit`` is given and below 1.
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        ranked = sorted(self.mon_stats.items(), key=lambda item: (-item[1], item[0]))
        return ranked if limit is None else ranked[:limit]
