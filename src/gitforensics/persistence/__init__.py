"""Bisect state persistence."""

from gitforensics.persistence.store import (
    STORAGE_KEY,
    StateStore,
    deserialize_state,
    serialize_state,
)

__all__ = ["STORAGE_KEY", "StateStore", "deserialize_state", "serialize_state"]
