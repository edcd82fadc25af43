"""Client for a running tab-hibernate service.

A service that is still starting up refuses connections for a moment;
requests are retried a bounded number of times with a short delay before
the failure is surfaced.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from .config import CLIENT_RETRIES, CLIENT_RETRY_DELAY_SECONDS
from .errors import ChannelUnavailableError, CommandRejectedError
from .tasks import TaskPolicy

logger = logging.getLogger(__name__)

DEFAULT_POLICY = TaskPolicy(timeout_s=10.0, attempts=CLIENT_RETRIES + 1, delay_s=CLIENT_RETRY_DELAY_SECONDS)


class HibernateClient:
    """Synchronous client for a running tab-hibernate service."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8765",
        policy: TaskPolicy = DEFAULT_POLICY,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.policy = policy
        self._sleep = sleep
        self._client = httpx.Client(base_url=self.base_url, timeout=policy.timeout_s, transport=transport)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "HibernateClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def send(self, type_: str, **fields: Any) -> dict:
        """Send one request and return the service's result object."""
        return self._request("POST", "/api/messages", json={"type": type_, **fields})

    def import_history(self, data: Any) -> dict:
        """Upload an exported history payload."""
        return self._request("POST", "/api/history/import", json=data)

    def export_history(self) -> dict:
        """Download the history and every backup bucket."""
        return self._request("GET", "/api/history/export")

    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        last_error: Exception | None = None
        for attempt in range(1, self.policy.attempts + 1):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                last_error = e
                logger.debug("Service unreachable (attempt %d/%d): %s", attempt, self.policy.attempts, e)
                if attempt < self.policy.attempts:
                    self._sleep(self.policy.delay_s)
                continue

            if response.status_code == 400:
                detail = response.json().get("detail", response.text)
                raise CommandRejectedError(str(detail))
            response.raise_for_status()
            return response.json()

        raise ChannelUnavailableError(
            f"No answer from {self.base_url} after {self.policy.attempts} attempts",
            {"error": str(last_error)},
        )
