"""Transport layer between the client and the Toggl REST API."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from toggl_timer.core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.track.toggl.com/api/v8"


class Transport(ABC):
    """Sends a request and returns the raw response body."""

    @abstractmethod
    def send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[Any] = None,
    ) -> bytes:
        """Send a request.

        Args:
            method: HTTP method
            path: Path relative to the API root (e.g. '/time_entries')
            params: Query parameters
            body: JSON-serializable request body

        Returns:
            Raw response body

        Raises:
            TransportError: If the request fails for any reason
        """
        pass


class RequestsTransport(Transport):
    """Transport backed by a requests session with API token auth."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """Initialize transport.

        Args:
            api_token: Toggl API token
            base_url: API root URL
            timeout: Per-request timeout in seconds
            session: Session to reuse. Creates one if None.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (api_token, "api_token")
        self.session.headers.update({"Content-Type": "application/json"})

    def send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[Any] = None,
    ) -> bytes:
        url = f"{self.base_url}{path}"
        data = json.dumps(body) if body is not None else None
        logger.debug(f"{method} {url} params={params} body={data}")

        try:
            response = self.session.request(
                method, url, params=params, data=data, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 400:
            raise TransportError(
                f"{method} {path} returned {response.status_code} {response.reason}",
                status_code=response.status_code,
                body=response.content,
            )

        return response.content
