"""Derived time entry operations that need no remote access.

Each function here builds the entry or payload for one step of a
continue, unstop or tag operation. EntryGateway sends the result.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from toggl_timer.core.errors import InvalidState, UnstopError
from toggl_timer.core.models import TimeEntry


@dataclass
class ExtendInPlace:
    """Continuation that reopens the existing entry under the same id."""

    entry: TimeEntry


@dataclass
class StartNew:
    """Continuation that starts a brand new entry."""

    payload: dict[str, Any]


Continuation = Union[ExtendInPlace, StartNew]


def creation_payload(entry: TimeEntry, duration_only: bool, app_name: str) -> dict[str, Any]:
    """Build the start request body for a new entry modelled on ``entry``."""
    return {
        "description": entry.description,
        "pid": entry.project_id,
        "tid": entry.task_id,
        "billable": entry.billable,
        "created_with": app_name,
        "tags": list(entry.tags),
        "duronly": duration_only,
    }


def same_local_day(first: datetime, second: datetime) -> bool:
    """Check if two instants fall on the same calendar day in local time."""
    return first.astimezone().date() == second.astimezone().date()


def extend_running(entry: TimeEntry, now: datetime) -> TimeEntry:
    """Copy ``entry`` as running again, keeping its accumulated duration.

    The running start epoch is placed ``entry.duration`` seconds before
    ``now`` so the remote clock carries on from the tracked total.
    """
    extended = entry.copy()
    extended.duration = -(int(now.timestamp()) - entry.duration)
    extended.duration_only = True
    extended.stop = None
    return extended


def plan_continuation(
    entry: TimeEntry, duration_only: bool, now: datetime, app_name: str
) -> Continuation:
    """Decide how to continue ``entry``.

    A duration-only continuation of an entry started today extends that
    entry in place. Anything else starts a new entry.

    Raises:
        InvalidState: If the entry is still running
    """
    if entry.is_running:
        raise InvalidState(f"Time entry {entry.id} is still running")
    if duration_only and entry.start is not None and same_local_day(now, entry.start):
        return ExtendInPlace(extend_running(entry, now))
    return StartNew(creation_payload(entry, duration_only, app_name))


def reopened(created: TimeEntry, original: TimeEntry) -> TimeEntry:
    """Copy of the replacement entry carrying the original start time."""
    entry = created.copy()
    entry.start = original.start
    return entry


def tag_action_payload(tag: str, add: bool) -> dict[str, Any]:
    return {"tags": [tag], "tag_action": "add" if add else "remove"}


class UnstopOutcome(Enum):
    """How far an unstop got."""

    COMPLETE = "complete"
    OLD_NOT_DELETED = "old_not_deleted"
    NEW_NOT_CONFIGURED = "new_not_configured"


@dataclass
class UnstopResult:
    """Result of an unstop.

    Attributes:
        entry: The replacement entry as last seen remotely
        outcome: Which steps completed
        original_id: Id of the entry that was reopened
        error: Failure of the update or delete step, if any
    """

    entry: TimeEntry
    outcome: UnstopOutcome
    original_id: int
    error: Optional[UnstopError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is UnstopOutcome.COMPLETE

    @property
    def original_deleted(self) -> bool:
        return self.outcome is UnstopOutcome.COMPLETE

    def raise_for_outcome(self) -> None:
        """Raise the recorded step failure, if any."""
        if self.error is not None:
            raise self.error
