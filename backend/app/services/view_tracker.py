"""Per-member view state and due-date counts for assignments.

Everything here is computed from already-loaded records; callers pass ``now``
explicitly and persist view marks through :mod:`app.services.assignment_views`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TrackedRecord:
    id: str
    group_id: str
    created_at: datetime
    due_at: datetime | None = None
    is_submitted: bool = False
    title: str = ""
    subject_code: str | None = None


@dataclass(frozen=True)
class AssignmentStats:
    total: int = 0
    submitted: int = 0
    pending: int = 0
    overdue: int = 0


class ViewLog:
    """At most one ``viewed_at`` per ``(member_id, record_id)`` pair."""

    def __init__(self, entries: Mapping[tuple[str, str], datetime] | None = None) -> None:
        self._entries: dict[tuple[str, str], datetime] = dict(entries or {})

    @classmethod
    def for_member(cls, member_id: str, views: Iterable[tuple[str, datetime]]) -> "ViewLog":
        return cls({(member_id, record_id): viewed_at for record_id, viewed_at in views})

    def mark_viewed(self, member_id: str, record_id: str, now: datetime) -> None:
        self._entries[(member_id, record_id)] = now

    def viewed_at(self, member_id: str, record_id: str) -> datetime | None:
        return self._entries.get((member_id, record_id))

    def has_viewed(self, member_id: str, record_id: str) -> bool:
        return (member_id, record_id) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def unviewed_ids(member_id: str, records: Iterable[TrackedRecord], view_log: ViewLog) -> set[str]:
    # A record viewed once stays viewed even if it is edited later.
    return {record.id for record in records if not view_log.has_viewed(member_id, record.id)}


def unread_count(member_id: str, records: Iterable[TrackedRecord], view_log: ViewLog) -> int:
    return len(unviewed_ids(member_id, records, view_log))


def stats(records: Iterable[TrackedRecord], now: datetime) -> AssignmentStats:
    total = submitted = pending = overdue = 0
    for record in records:
        total += 1
        if record.is_submitted:
            submitted += 1
        elif record.due_at is not None and record.due_at < now:
            overdue += 1
        else:
            pending += 1
    return AssignmentStats(total=total, submitted=submitted, pending=pending, overdue=overdue)


def upcoming_count(records: Iterable[TrackedRecord], now: datetime) -> int:
    return sum(1 for record in records if record.due_at is not None and record.due_at >= now)


def next_due(records: Iterable[TrackedRecord], now: datetime) -> TrackedRecord | None:
    candidates = [record for record in records if record.due_at is not None and record.due_at >= now]
    if not candidates:
        return None
    return min(candidates, key=lambda record: (record.due_at, record.id))
