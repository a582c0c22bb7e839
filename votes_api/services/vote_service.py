"""Vote use cases: the in-memory store and its write-through to disk."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional

from votes_api.domain.votes import (
    InvalidVoteError,
    StoreState,
    VotePolicy,
    VoteRecord,
    create_policy,
    lenient_update_policy,
    parse_timestamp,
    utc_timestamp,
)
from votes_api.repositories.json_storage import JsonStorage, PersistenceError

logger = logging.getLogger(__name__)


class VoteError(Exception):
    """Base exception for vote workflow."""


class ValidationError(VoteError):
    """Raised when caller-supplied fields fail a required-field rule."""


class NotFoundError(VoteError):
    """Raised when no vote has the requested id."""

    def __init__(self, vote_id: Any) -> None:
        super().__init__(f"Vote {vote_id} not found")
        self.vote_id = vote_id


class VoteStore:
    """
    Single authoritative holder of all votes plus the next-id counter.

    Mutations run under one lock as "change memory, then save"; if the save
    fails the change is rolled back and the PersistenceError propagates, so
    memory never gets ahead of the file.
    """

    def __init__(
        self,
        storage: JsonStorage,
        state: Optional[StoreState] = None,
        *,
        update_policy: VotePolicy = lenient_update_policy,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.storage = storage
        self._state = state if state is not None else StoreState()
        self._update_policy = update_policy
        self._clock = clock
        self._lock = threading.RLock()

    @classmethod
    def open(cls, storage: JsonStorage, **kwargs: Any) -> "VoteStore":
        """Load the persisted state (creating the file if needed) and wrap it."""
        state = storage.load()
        logger.info("Loaded %d votes from %s (nextId=%d)", len(state.records), storage.path, state.next_id)
        return cls(storage, state, **kwargs)

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._state.next_id

    def snapshot(self) -> StoreState:
        with self._lock:
            return self._state.snapshot()

    # -------------------------- reads --------------------------
    def list(self) -> List[VoteRecord]:
        """All votes, most recent first."""
        with self._lock:
            records = [record.copy() for record in self._state.records]
        records.sort(key=lambda r: (parse_timestamp(r.created_at), r.id), reverse=True)
        return records

    def get(self, vote_id: int) -> VoteRecord:
        with self._lock:
            return self._find(vote_id).copy()

    # -------------------------- writes -------------------------
    def create(self, title: Any, content: Any = None) -> VoteRecord:
        try:
            title, content = create_policy(title, content)
        except InvalidVoteError as exc:
            raise ValidationError(str(exc)) from exc
        with self._lock:
            previous = self._state.snapshot()
            record = VoteRecord(
                id=self._state.next_id,
                title=title,
                content=content,
                created_at=self._now(),
            )
            self._state.next_id += 1
            self._state.records.append(record)
            self._persist(previous, "create", record.id)
            return record.copy()

    def update(self, vote_id: int, title: Any, content: Any) -> VoteRecord:
        with self._lock:
            record = self._find(vote_id)
            try:
                title, content = self._update_policy(title, content)
            except InvalidVoteError as exc:
                raise ValidationError(str(exc)) from exc
            previous = self._state.snapshot()
            record.title = title
            record.content = content
            self._persist(previous, "update", vote_id)
            return record.copy()

    def delete(self, vote_id: int) -> VoteRecord:
        with self._lock:
            record = self._find(vote_id)
            previous = self._state.snapshot()
            self._state.records.remove(record)
            self._persist(previous, "delete", vote_id)
            return record.copy()

    def flush(self) -> None:
        """Persist the current state as-is (used on shutdown)."""
        with self._lock:
            self.storage.save(self._state)

    # -------------------------- helpers ------------------------
    def _find(self, vote_id: int) -> VoteRecord:
        for record in self._state.records:
            if record.id == vote_id:
                return record
        raise NotFoundError(vote_id)

    def _now(self) -> str:
        return utc_timestamp(self._clock() if self._clock else None)

    def _persist(self, previous: StoreState, action: str, vote_id: int) -> None:
        try:
            self.storage.save(self._state)
        except PersistenceError:
            logger.error("Save failed after %s of vote %s; rolling back", action, vote_id)
            self._state = previous
            raise
        logger.debug("Persisted %s of vote %s (%d votes)", action, vote_id, len(self._state.records))
