"""Memory package for state persistence.

This package provides:
- JsonStatePersistence: Loads and saves the engine state as JSON
- PersistenceError: Base error for persistence operations
- CorruptedDataError: Error for malformed state files
"""

from src.memory.persistence import (
    CorruptedDataError,
    JsonStatePersistence,
    PersistenceError,
)

__all__ = [
    "CorruptedDataError",
    "JsonStatePersistence",
    "PersistenceError",
]
