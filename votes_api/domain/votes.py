"""Domain helpers for vote records: types, timestamps and validation policies."""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime:
    """Parse a stored created_at value; unparsable values sort as the oldest."""
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class VoteRecord:
    id: int
    title: Optional[str]
    content: Optional[str]
    created_at: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VoteRecord":
        """Build a record from its JSON form; raises KeyError/TypeError/ValueError on bad shape."""
        raw_id = data["id"]
        created_at = data.get("created_at")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise TypeError(f"vote id must be an integer, got {raw_id!r}")
        if created_at is not None and not isinstance(created_at, str):
            raise TypeError(f"created_at must be a string, got {created_at!r}")
        return cls(
            id=raw_id,
            title=data.get("title"),
            content=data.get("content"),
            created_at=created_at,
        )

    def copy(self) -> "VoteRecord":
        return replace(self)


@dataclass
class StoreState:
    """Everything that gets persisted: the records plus the id counter."""

    records: List[VoteRecord] = field(default_factory=list)
    next_id: int = 1

    def to_dict(self) -> dict:
        return {
            "votes": [record.to_dict() for record in self.records],
            "nextId": self.next_id,
        }

    def snapshot(self) -> "StoreState":
        return StoreState(records=[record.copy() for record in self.records], next_id=self.next_id)

    def max_id(self) -> int:
        return max((record.id for record in self.records), default=0)


class InvalidVoteError(ValueError):
    """Raised by validation policies when caller-supplied fields break a rule."""


# A policy receives (title, content) and returns the normalized pair or raises InvalidVoteError.
VotePolicy = Callable[[Any, Any], Tuple[Optional[str], Optional[str]]]


def _check_encodable(value: Any) -> Any:
    # Lone surrogates are valid JSON escapes but cannot be written as UTF-8.
    try:
        json.dumps(value, ensure_ascii=False).encode("utf-8")
    except (UnicodeEncodeError, TypeError, ValueError) as exc:
        raise InvalidVoteError("title and content must be valid UTF-8 text") from exc
    return value


def _check_content(content: Any) -> Optional[str]:
    if content is not None and not isinstance(content, str):
        raise InvalidVoteError("content must be a string")
    return content


def create_policy(title: Any, content: Any) -> tuple[Optional[str], Optional[str]]:
    """Title is required; an empty content is stored as null."""
    if not isinstance(title, str) or not title:
        raise InvalidVoteError("title is required")
    return _check_encodable(title), _check_encodable(_check_content(content) or None)


def lenient_update_policy(title: Any, content: Any) -> tuple[Optional[str], Optional[str]]:
    """Accept whatever the caller sends as long as it can be stored; the title may become empty or null."""
    return _check_encodable(title), _check_encodable(content)


def strict_update_policy(title: Any, content: Any) -> tuple[Optional[str], Optional[str]]:
    """Same rules as create, but an empty content is kept as-is."""
    if not isinstance(title, str) or not title:
        raise InvalidVoteError("title is required")
    return _check_encodable(title), _check_encodable(_check_content(content))
