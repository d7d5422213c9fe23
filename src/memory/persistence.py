"""Engine state persistence as a JSON file.

The state file is a single human-readable object:

    {"encounters": 3, "last_encounter": ["eevee"], "mode": "Walk",
     "mon_stats": {"eevee": 2, "pidgey": 1}}

It is read once at startup and overwritten wholesale on every save.
There is no locking and no atomic replace; a crash mid-write can leave
a corrupted file, which is reported on the next load.

Example:
    >>> from src.memory.persistence import JsonStatePersistence
    >>>
    >>> persistence = JsonStatePersistence("state.json")
    >>> state = persistence.load_state()
    >>> state.encounters += 1
    >>> persistence.save_state(state)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from src.models.state import EngineState

logger = logging.getLogger(__name__)

# Default state file path
DEFAULT_STATE_PATH = Path("state.json")


class PersistenceError(Exception):
    """Error raised when persistence operations fail."""

    pass


class CorruptedDataError(PersistenceError):
    """Error raised when the state file cannot be parsed."""

    pass


class JsonStatePersistence:
    """Loads and saves the engine state to a JSON file.

    Attributes:
        state_path: Path to the state file.
    """

    def __init__(self, state_path: str | Path | None = None) -> None:
        self._state_path = Path(state_path) if state_path else DEFAULT_STATE_PATH

    @property
    def state_path(self) -> Path:
        """Get the state file path."""
        return self._state_path

    def exists(self) -> bool:
        """Check whether a state file is present."""
        return self._state_path.is_file()

    @staticmethod
    def _serialize_state(state: EngineState) -> str:
        """Serialize state to a JSON string.

        Raises:
            PersistenceError: If the state cannot be serialized.
        """
        try:
            return json.dumps(state.model_dump(mode="json"))
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to serialize state: {e}") from e

    @staticmethod
    def _deserialize_state(json_str: str) -> EngineState:
        """Parse and validate a JSON state string.

        Raises:
            CorruptedDataError: If the JSON is invalid or fails validation.
        """
        try:
            data: Any = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise CorruptedDataError(f"Invalid JSON in state file: {e}") from e

        try:
            return EngineState.model_validate(data)
        except ValidationError as e:
            raise CorruptedDataError(f"Invalid state data: {e}") from e

    def load_state(self) -> EngineState:
        """Load the state from disk.

        Returns:
            The stored state.

        Raises:
            PersistenceError: If the file is missing or unreadable.
            CorruptedDataError: If the file content is malformed.
        """
        try:
            json_str = self._state_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read state from {self._state_path}: {e}") from e

        state = self._deserialize_state(json_str)
        logger.debug(f"Loaded state from {self._state_path}")
        return state

    def save_state(self, state: EngineState) -> None:
        """Overwrite the state file with the given state.

        Raises:
            PersistenceError: If the write fails.
        """
        json_str = self._serialize_state(state)
        try:
            self._state_path.write_text(json_str, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to write state to {self._state_path}: {e}") from e

        logger.debug(f"Saved state to {self._state_path}")

    def init_state(self, *, force: bool = False) -> EngineState:
        """Write a fresh default state.

        Args:
            force: Overwrite an existing file.

        Returns:
            The fresh state.

        Raises:
            PersistenceError: If a file exists and ``force`` is not set,
                or the write fails.
        """
        if self.exists() and not force:
            raise PersistenceError(f"State file already exists: {self._state_path}")

        self._state_path.parent.mkdir(parents=True, exist_ok=True)
        state = EngineState()
        self.save_state(state)
        logger.info(f"Initialized fresh state at {self._state_path}")
        return state
