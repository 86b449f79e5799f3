"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

import pytest  # type: ignore[import-not-found]

from toggl_timer.core.errors import TransportError
from toggl_timer.core.gateway import EntryGateway
from toggl_timer.core.transport import Transport

# 2024-01-02 15:00:00 UTC
FIXED_NOW = datetime(2024, 1, 2, 15, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")


class FakeTransport(Transport):
    """Transport that replays queued responses and records every call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses: list[Union[bytes, Exception]] = []

    def queue(self, response: Union[bytes, dict, list, Exception]) -> None:
        if isinstance(response, (dict, list)):
            response = json.dumps(response).encode()
        self._responses.append(response)

    def send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[Any] = None,
    ) -> bytes:
        self.calls.append({"method": method, "path": path, "params": params, "body": body})
        if not self._responses:
            raise TransportError(f"No response queued for {method} {path}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def transport() -> FakeTransport:
    """Create an empty fake transport."""
    return FakeTransport()


@pytest.fixture
def gateway(transport: FakeTransport) -> EntryGateway:
    """Create a gateway on the fake transport with a fixed clock."""
    return EntryGateway(transport, app_name="tests", clock=lambda: FIXED_NOW)
