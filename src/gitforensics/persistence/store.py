"""File-backed persistence for bisect session state.

The record is the JSON object the dashboard kept in browser storage:

.. code-block:: json

    {
        "isActive": true,
        "goodHash": "7fbc12a3...",
        "badHash": "d5e6f7a8...",
        "currentMidpoint": "b9a8c7d6...",
        "eliminatedHashes": ["7fbc12a3..."],
        "suspectedHash": null,
        "remaining": 4,
        "steps": 2,
        "history": []
    }

``eliminatedHashes`` is an array on disk and a set in memory; the
conversion happens only in serialize_state()/deserialize_state().
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gitforensics.bisect.models import BisectState
from gitforensics.core.log import logger

STORAGE_KEY = "git-forensics-bisect-state"


def serialize_state(state: BisectState) -> dict[str, Any]:
    """Convert a state to its JSON-ready record."""
    data = state.model_dump(
        mode="json", by_alias=True, exclude={"eliminated_hashes", "history"}
    )
    data["eliminatedHashes"] = sorted(state.eliminated_hashes)
    data["history"] = [serialize_state(s) for s in state.history]
    return data


def deserialize_state(data: dict[str, Any]) -> BisectState:
    """Rebuild a state from a record written by serialize_state().

    Raises:
        ValidationError: If the record does not describe a state
    """
    record = dict(data)
    record["eliminatedHashes"] = set(record.get("eliminatedHashes") or [])
    record["history"] = tuple(
        deserialize_state(h) for h in record.get("history") or []
    )
    return BisectState.model_validate(record)


class StateStore:
    """Saves the active session to a JSON file.

    Only active sessions are kept; saving an inactive state removes the
    file, as does clear().
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> BisectState | None:
        """Return the saved state, or None if there is none usable."""
        if not self.path.is_file():
            return None

        try:
            record = json.loads(self.path.read_text(encoding="utf-8"))
            return deserialize_state(record)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error(
                "Failed to restore bisect session",
                path=str(self.path),
                error=str(e),
            )
            return None

    def save(self, state: BisectState) -> None:
        if not state.is_active:
            self.clear()
            return

        logger.debug("Saving active bisect state", path=str(self.path))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(serialize_state(state), indent=2), encoding="utf-8"
        )

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
