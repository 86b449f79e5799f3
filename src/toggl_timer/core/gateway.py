"""Time entry operations against the Toggl API."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from toggl_timer.core.config import ConfigManager
from toggl_timer.core.errors import (
    CreateFailed,
    DeleteFailed,
    InvalidState,
    MalformedResponse,
    TogglError,
    UpdateFailed,
)
from toggl_timer.core.models import Account, TimeEntry
from toggl_timer.core.timestamps import format_timestamp
from toggl_timer.core.transitions import (
    ExtendInPlace,
    UnstopOutcome,
    UnstopResult,
    creation_payload,
    plan_continuation,
    reopened,
    tag_action_payload,
)
from toggl_timer.core.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "toggl-timer"


def _load_json(data: bytes) -> Any:
    try:
        return json.loads(data)
    except ValueError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e


def decode_entry_response(data: bytes) -> Optional[TimeEntry]:
    """Decode a ``{"data": {...}}`` response.

    Returns:
        The entry, or None if ``data`` is null

    Raises:
        MalformedResponse: If the body is not a time entry response
    """
    payload = _load_json(data)
    if not isinstance(payload, dict) or "data" not in payload:
        raise MalformedResponse("Response has no 'data' field")
    if payload["data"] is None:
        return None
    entry = TimeEntry.from_dict(payload["data"])
    logger.debug(f"Decoded time entry {entry.id}")
    return entry


def _require_entry(data: bytes) -> TimeEntry:
    entry = decode_entry_response(data)
    if entry is None:
        raise MalformedResponse("Response contains no time entry")
    return entry


class EntryGateway:
    """Start, stop and reshape time entries on the remote service."""

    def __init__(
        self,
        transport: Transport,
        app_name: str = DEFAULT_APP_NAME,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize gateway.

        Args:
            transport: Transport used for every remote call
            app_name: Sent as ``created_with`` on new entries
            clock: Returns the current time. Defaults to the system clock.
        """
        self.transport = transport
        self.app_name = app_name
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_config(cls, config: ConfigManager) -> "EntryGateway":
        """Build a gateway with a RequestsTransport from configuration.

        Raises:
            ValueError: If no API token is configured
        """
        token = config.api_token()
        if not token:
            raise ValueError(
                "No API token configured. Set TOGGL_API_TOKEN or "
                "run 'toggl-timer config set api.token <token>'"
            )
        transport = RequestsTransport(
            token,
            base_url=config.get("api.base_url"),
            timeout=config.get("api.timeout", 30),
        )
        return cls(transport, app_name=config.get("api.app_name", DEFAULT_APP_NAME))

    def start_time_entry(
        self,
        description: str,
        project_id: int = 0,
        billable: bool = False,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        """Start a new running entry.

        Args:
            description: Entry description
            project_id: Project to file the entry under (0 for none)
            billable: Billable flag (ignored by the service on free plans)
            tags: Tags for the entry

        Returns:
            The created entry
        """
        payload: dict[str, Any] = {
            "description": description,
            "created_with": self.app_name,
        }
        if project_id:
            payload["pid"] = project_id
            payload["billable"] = billable
        if tags:
            payload["tags"] = list(dict.fromkeys(tags))

        logger.info(f"Starting time entry {description!r}")
        return self._start(payload)

    def get_current_time_entry(self) -> Optional[TimeEntry]:
        """Get the running entry, or None if nothing is running."""
        data = self.transport.send("GET", "/time_entries/current")
        return decode_entry_response(data)

    def get_time_entry(self, entry_id: int) -> TimeEntry:
        """Get a single entry by id."""
        data = self.transport.send("GET", f"/time_entries/{entry_id}")
        return _require_entry(data)

    def get_time_entries(self, start_date: datetime, end_date: datetime) -> list[TimeEntry]:
        """Get entries started within a date range.

        Args:
            start_date: Range start
            end_date: Range end

        Returns:
            Entries in the order returned by the service
        """
        params = {
            "start_date": format_timestamp(start_date),
            "end_date": format_timestamp(end_date),
        }
        data = self.transport.send("GET", "/time_entries", params=params)
        payload = _load_json(data)
        if not isinstance(payload, list):
            raise MalformedResponse("Expected a list of time entries")
        return [TimeEntry.from_dict(item) for item in payload]

    def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Replace the remote entry with ``entry``."""
        logger.info(f"Updating time entry {entry.id}")
        data = self.transport.send(
            "PUT", f"/time_entries/{entry.id}", body={"time_entry": entry.to_dict()}
        )
        return _require_entry(data)

    def stop_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Stop a running entry. The service fills in stop and duration."""
        logger.info(f"Stopping time entry {entry.id}")
        data = self.transport.send("PUT", f"/time_entries/{entry.id}/stop")
        return _require_entry(data)

    def continue_time_entry(self, entry: TimeEntry, duration_only: bool) -> TimeEntry:
        """Resume tracking the work recorded by ``entry``.

        A duration-only continuation of an entry from today reopens that
        entry; otherwise a new entry with the same details is started.

        Raises:
            InvalidState: If the entry is still running
        """
        logger.info(f"Continuing time entry {entry.id} (duration_only={duration_only})")
        plan = plan_continuation(entry, duration_only, self.clock(), self.app_name)

        if isinstance(plan, ExtendInPlace):
            logger.debug(f"Extending time entry {entry.id} in place")
            return self.update_time_entry(plan.entry)

        logger.debug("Starting a new time entry for continuation")
        return self._start(plan.payload)

    def unstop_time_entry(self, entry: TimeEntry) -> UnstopResult:
        """Reopen a stopped entry.

        The service cannot restart a stopped entry, so a replacement is
        started, given the original start time, and the original is
        deleted. Steps run in order and stop at the first failure.

        Returns:
            Result describing the replacement entry and how far the
            sequence got. Update and delete failures are recorded on the
            result rather than raised.

        Raises:
            InvalidState: If the entry is still running
            CreateFailed: If the replacement entry could not be started
        """
        if entry.is_running:
            raise InvalidState(f"Time entry {entry.id} is still running")

        logger.info(f"Unstopping time entry {entry.id}")
        try:
            created = self._start(
                creation_payload(entry, entry.duration_only, self.app_name)
            )
        except TogglError as e:
            raise CreateFailed(e) from e

        try:
            updated = self.update_time_entry(reopened(created, entry))
        except TogglError as e:
            logger.warning(f"Unstop left time entry {created.id} without its original start")
            return UnstopResult(
                entry=created,
                outcome=UnstopOutcome.NEW_NOT_CONFIGURED,
                original_id=entry.id,
                error=UpdateFailed(e, dangling_id=created.id),
            )

        try:
            self.delete_time_entry(entry)
        except TogglError as e:
            logger.warning(f"Unstop could not delete original time entry {entry.id}")
            return UnstopResult(
                entry=updated,
                outcome=UnstopOutcome.OLD_NOT_DELETED,
                original_id=entry.id,
                error=DeleteFailed(e, dangling_id=entry.id),
            )

        return UnstopResult(entry=updated, outcome=UnstopOutcome.COMPLETE, original_id=entry.id)

    def add_remove_tag(self, entry_id: int, tag: str, add: bool) -> TimeEntry:
        """Add or remove one tag on the remote entry.

        The local entry object is not touched; the returned entry reflects
        the remote tag set.
        """
        logger.info(f"{'Adding' if add else 'Removing'} tag {tag!r} on time entry {entry_id}")
        data = self.transport.send(
            "PUT",
            f"/time_entries/{entry_id}",
            body={"time_entry": tag_action_payload(tag, add)},
        )
        return _require_entry(data)

    def delete_time_entry(self, entry: TimeEntry) -> bytes:
        """Delete an entry. Returns the raw response body."""
        logger.info(f"Deleting time entry {entry.id}")
        return self.transport.send("DELETE", f"/time_entries/{entry.id}")

    def get_account(self) -> Account:
        """Get the account with its related workspaces, projects and entries."""
        data = self.transport.send("GET", "/me", params={"with_related_data": "true"})
        payload = _load_json(data)
        if not isinstance(payload, dict) or "data" not in payload:
            raise MalformedResponse("Response has no 'data' field")
        return Account.from_dict(payload["data"])

    def _start(self, payload: dict[str, Any]) -> TimeEntry:
        data = self.transport.send("POST", "/time_entries/start", body={"time_entry": payload})
        return _require_entry(data)
