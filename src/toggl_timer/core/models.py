"""Core data models for Toggl time entries."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from toggl_timer.core.errors import InvalidState, MalformedResponse
from toggl_timer.core.timestamps import ZERO_INSTANT, format_timestamp, parse_timestamp


@dataclass(frozen=True)
class Stopped:
    """Timing of a finished entry.

    Attributes:
        seconds: Tracked duration in seconds
    """

    seconds: int = 0

    def to_wire(self) -> int:
        return self.seconds


@dataclass(frozen=True)
class Running:
    """Timing of an entry that is still running.

    Attributes:
        started_epoch: Unix time (seconds) at which the entry started
    """

    started_epoch: int

    def to_wire(self) -> int:
        return -self.started_epoch


Timing = Union[Stopped, Running]


def timing_from_wire(duration: int) -> Timing:
    """Decode the signed ``duration`` wire field.

    Negative values mark a running entry and carry its start epoch.
    """
    if duration < 0:
        return Running(started_epoch=-duration)
    return Stopped(seconds=duration)


def elapsed_seconds(start: datetime, stop: datetime) -> int:
    """Whole seconds between two instants, rounded down."""
    return math.floor((stop - start).total_seconds())


def stopped_for(seconds: int) -> Stopped:
    """Timing for a finished entry.

    Raises:
        InvalidState: If ``seconds`` is negative, which would read as running
    """
    if seconds < 0:
        raise InvalidState(f"Duration cannot be negative: {seconds}s")
    return Stopped(seconds)


@dataclass(eq=False)
class TimeEntry:
    """Time entry as stored by the remote service.

    Attributes:
        id: Remote identifier (0 if not persisted yet)
        workspace_id: Workspace (0 if unset)
        project_id: Project (0 if unset)
        task_id: Task (0 if unset)
        description: Free text description
        tags: Tag names, no duplicates
        start: When the entry started (None before creation)
        stop: When the entry stopped (None while running)
        timing: Stopped duration or running start epoch
        duration_only: Duration is authoritative, start is approximate
        billable: Billing flag, passed through unchanged
    """

    id: int = 0
    workspace_id: int = 0
    project_id: int = 0
    task_id: int = 0
    description: str = ""
    tags: list[str] = field(default_factory=list)
    start: Optional[datetime] = None
    stop: Optional[datetime] = None
    timing: Timing = field(default_factory=Stopped)
    duration_only: bool = False
    billable: Union[bool, float] = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeEntry):
            return NotImplemented
        return (
            self.id == other.id
            and self.workspace_id == other.workspace_id
            and self.project_id == other.project_id
            and self.task_id == other.task_id
            and self.description == other.description
            and set(self.tags) == set(other.tags)
            and self.start == other.start
            and self.stop == other.stop
            and self.timing == other.timing
            and self.duration_only == other.duration_only
            and self.billable == other.billable
        )

    @property
    def duration(self) -> int:
        """Signed wire duration: seconds if stopped, -start_epoch if running."""
        return self.timing.to_wire()

    @duration.setter
    def duration(self, value: int) -> None:
        self.timing = timing_from_wire(value)

    @property
    def is_running(self) -> bool:
        """Check if this entry is currently running."""
        return self.duration < 0

    @property
    def start_time(self) -> datetime:
        """Start instant, or ZERO_INSTANT if unset."""
        return self.start if self.start is not None else ZERO_INSTANT

    @property
    def stop_time(self) -> datetime:
        """Stop instant, or ZERO_INSTANT if unset."""
        return self.stop if self.stop is not None else ZERO_INSTANT

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def add_tag(self, tag: str) -> None:
        """Add a tag unless the entry already has it."""
        if not self.has_tag(tag):
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        """Remove a tag if present."""
        if self.has_tag(tag):
            self.tags.remove(tag)

    def set_duration(self, seconds: int) -> None:
        """Set the duration of a stopped entry; the stop time follows.

        Raises:
            InvalidState: If the entry is running, has no start time or
                ``seconds`` is negative
        """
        if self.is_running:
            raise InvalidState("Time entry must be stopped to set its duration")
        if self.start is None:
            raise InvalidState("Time entry has no start time")

        self.timing = stopped_for(seconds)
        self.stop = self.start + timedelta(seconds=seconds)

    def set_start_time(self, start: datetime, update_end: bool) -> None:
        """Set the start time.

        For a stopped entry either the stop time moves with the start
        (``update_end=True``) or the duration absorbs the change
        (``update_end=False``). A running entry only gets a new start.

        Raises:
            InvalidState: If the duration must be recomputed but the
                entry has no stop time, or the new start is after the stop
        """
        if self.is_running:
            self.start = start
            return

        if update_end:
            self.start = start
            self.stop = start + timedelta(seconds=self.duration)
            return

        stop = self.stop
        if stop is None:
            raise InvalidState("Time entry has no stop time")
        self.timing = stopped_for(elapsed_seconds(start, stop))
        self.start = start

    def set_stop_time(self, stop: datetime) -> None:
        """Set the stop time of a stopped entry; the duration follows.

        Raises:
            InvalidState: If the entry is running, has no start time or
                ``stop`` is before the start
        """
        if self.is_running:
            raise InvalidState("Time entry must be stopped to set its stop time")
        if self.start is None:
            raise InvalidState("Time entry has no start time")

        self.timing = stopped_for(elapsed_seconds(self.start, stop))
        self.stop = stop

    def copy(self) -> "TimeEntry":
        """Return a copy that shares no mutable state with this entry."""
        return replace(self, tags=list(self.tags))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``time_entry`` wire mapping."""
        data: dict[str, Any] = {}
        if self.workspace_id:
            data["wid"] = self.workspace_id
        if self.id:
            data["id"] = self.id
        data["pid"] = self.project_id
        data["tid"] = self.task_id
        if self.description:
            data["description"] = self.description
        if self.stop is not None:
            data["stop"] = format_timestamp(self.stop)
        if self.start is not None:
            data["start"] = format_timestamp(self.start)
        data["tags"] = list(self.tags)
        if self.duration:
            data["duration"] = self.duration
        data["duronly"] = self.duration_only
        data["billable"] = self.billable
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from a wire mapping.

        Raises:
            MalformedResponse: If a field has the wrong type
            MalformedTimestamp: If ``start`` or ``stop`` cannot be parsed
        """
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected a time entry object, got {type(data).__name__}")

        try:
            tags = data.get("tags") or []
            entry = cls(
                id=int(data.get("id") or 0),
                workspace_id=int(data.get("wid") or 0),
                project_id=int(data.get("pid") or 0),
                task_id=int(data.get("tid") or 0),
                description=data.get("description") or "",
                tags=list(dict.fromkeys(str(t) for t in tags)),
                timing=timing_from_wire(int(data.get("duration") or 0)),
                duration_only=bool(data.get("duronly", False)),
                billable=data.get("billable") or False,
            )
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid time entry data: {e}") from e

        entry.start = parse_timestamp(data.get("start"))
        entry.stop = parse_timestamp(data.get("stop"))
        return entry


@dataclass
class Account:
    """Snapshot of the user account and its related data.

    Workspaces, clients, projects, tasks and tags are kept as the raw
    mappings returned by the service.
    """

    id: int
    api_token: str = ""
    timezone: str = ""
    beginning_of_week: int = 0
    workspaces: list[dict[str, Any]] = field(default_factory=list)
    clients: list[dict[str, Any]] = field(default_factory=list)
    projects: list[dict[str, Any]] = field(default_factory=list)
    tasks: list[dict[str, Any]] = field(default_factory=list)
    tags: list[dict[str, Any]] = field(default_factory=list)
    time_entries: list[TimeEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        """Create Account from the ``data`` object of a ``/me`` response."""
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected an account object, got {type(data).__name__}")

        try:
            return cls(
                id=int(data.get("id") or 0),
                api_token=data.get("api_token") or "",
                timezone=data.get("timezone") or "",
                beginning_of_week=int(data.get("beginning_of_week") or 0),
                workspaces=list(data.get("workspaces") or []),
                clients=list(data.get("clients") or []),
                projects=list(data.get("projects") or []),
                tasks=list(data.get("tasks") or []),
                tags=list(data.get("tags") or []),
                time_entries=[TimeEntry.from_dict(e) for e in data.get("time_entries") or []],
            )
        except MalformedResponse:
            raise
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid account data: {e}") from e
