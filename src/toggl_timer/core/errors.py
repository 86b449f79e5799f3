"""Exception hierarchy for the Toggl client."""

from typing import Optional


class TogglError(Exception):
    """Base class for every error raised by toggl_timer."""


class MalformedResponse(TogglError, ValueError):
    """Response data could not be decoded into a domain object."""


class MalformedTimestamp(MalformedResponse):
    """Timestamp string matched none of the known formats."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unrecognized timestamp: {value!r}")


class InvalidState(TogglError, ValueError):
    """Operation is not allowed in the entry's current state."""


class TransportError(TogglError):
    """Failure reported by the transport layer.

    Attributes:
        status_code: HTTP status code (None for network-level failures)
        body: Raw response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: bytes = b"",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnstopError(TogglError):
    """A step of the unstop sequence failed.

    Attributes:
        step: Name of the failed step ("create", "update" or "delete")
        cause: Underlying transport or decode error
        dangling_id: Remote entry id left for manual reconciliation
    """

    step = ""

    def __init__(self, cause: Exception, dangling_id: int = 0):
        self.cause = cause
        self.dangling_id = dangling_id
        message = f"Unstop failed at {self.step} step: {cause}"
        if dangling_id:
            message += f" (entry {dangling_id} needs reconciliation)"
        super().__init__(message)


class CreateFailed(UnstopError):
    """The replacement entry could not be created."""

    step = "create"


class UpdateFailed(UnstopError):
    """The replacement entry exists but its start time was not restored."""

    step = "update"


class DeleteFailed(UnstopError):
    """The replacement entry is configured but the original was not deleted."""

    step = "delete"
