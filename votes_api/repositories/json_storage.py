"""
JSON-file persistence adapter for the vote store.

The whole state ({"votes": [...], "nextId": n}) lives in one human-readable
file that is rewritten wholesale on every save. That keeps the format
trivial to inspect and back up, and is fine for small record volumes (a
few thousand votes); past that, every mutation pays for serializing the
entire set.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from votes_api.domain.votes import StoreState, VoteRecord

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the data file cannot be read or written."""


class CorruptStateError(PersistenceError):
    """Raised when the data file exists but does not hold a valid state."""


class JsonStorage:
    """Loads and atomically replaces the JSON data file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> StoreState:
        if not self.path.exists():
            logger.info("No data file at %s; starting with an empty store", self.path)
            state = StoreState()
            self.save(state)
            return state
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise CorruptStateError(f"{self.path} is not valid JSON: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        return self._state_from_json(raw)

    def save(self, state: StoreState) -> None:
        """Write the full state to a temp file, then rename it over the data file."""
        directory = self.path.parent
        tmp_name = None
        try:
            payload = json.dumps(state.to_dict(), ensure_ascii=False, indent=2)
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, ValueError) as exc:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc

    def _state_from_json(self, raw: object) -> StoreState:
        if not isinstance(raw, dict):
            raise CorruptStateError(f"{self.path} must hold a JSON object")
        votes = raw.get("votes")
        next_id = raw.get("nextId")
        if not isinstance(votes, list):
            raise CorruptStateError(f"{self.path}: 'votes' must be a list")
        if isinstance(next_id, bool) or not isinstance(next_id, int):
            raise CorruptStateError(f"{self.path}: 'nextId' must be an integer")

        records = []
        seen = set()
        for item in votes:
            if not isinstance(item, dict):
                raise CorruptStateError(f"{self.path}: every vote must be an object")
            try:
                record = VoteRecord.from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                raise CorruptStateError(f"{self.path}: invalid vote {item!r}: {exc}") from exc
            if record.id in seen:
                raise CorruptStateError(f"{self.path}: duplicate vote id {record.id}")
            seen.add(record.id)
            records.append(record)

        state = StoreState(records=records, next_id=next_id)
        if state.next_id <= state.max_id():
            logger.warning(
                "nextId %s in %s is not above the highest id %s; bumping it",
                state.next_id,
                self.path,
                state.max_id(),
            )
            state.next_id = state.max_id() + 1
        if state.next_id < 1:
            state.next_id = 1
        return state
