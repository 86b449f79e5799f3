"""Core functionality for Toggl time entries."""

from toggl_timer.core.errors import (
    CreateFailed,
    DeleteFailed,
    InvalidState,
    MalformedResponse,
    MalformedTimestamp,
    TogglError,
    TransportError,
    UnstopError,
    UpdateFailed,
)
from toggl_timer.core.gateway import EntryGateway
from toggl_timer.core.models import Account, Running, Stopped, TimeEntry
from toggl_timer.core.transitions import UnstopOutcome, UnstopResult
from toggl_timer.core.transport import RequestsTransport, Transport

__all__ = [
    "Account",
    "CreateFailed",
    "DeleteFailed",
    "EntryGateway",
    "InvalidState",
    "MalformedResponse",
    "MalformedTimestamp",
    "RequestsTransport",
    "Running",
    "Stopped",
    "TimeEntry",
    "TogglError",
    "Transport",
    "TransportError",
    "UnstopError",
    "UnstopOutcome",
    "UnstopResult",
    "UpdateFailed",
]
