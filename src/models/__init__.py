"""Shared data models.

All models use Pydantic for validation and serialization.
"""

from src.models.state import EngineState, Mode

__all__ = ["EngineState", "Mode"]
