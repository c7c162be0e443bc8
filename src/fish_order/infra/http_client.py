"""Shared JSON-over-HTTP client for the store and chat platform APIs.

Failed requests are not retried: a failed create or update must be
re-issued by the operator, so errors surface immediately.
"""

import logging
import time
from typing import Any

import requests

from ..errors import HttpStatusError, TransportError

logger = logging.getLogger(__name__)


class HttpClient:
    """Thin wrapper around a ``requests.Session``.

    Args:
        headers: Headers sent with every request (auth, API version).
        timeout: Per-request timeout in seconds; None waits indefinitely.
        rate_limit_sleep: Pause after each successful call, for APIs with
            a request-rate budget.
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        rate_limit_sleep: float = 0.0,
    ):
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if headers:
            self.session.headers.update(headers)
        self.timeout = timeout
        self.rate_limit_sleep = rate_limit_sleep

    def request(self, method: str, url: str, json: dict | None = None) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            HttpStatusError: On a non-2xx response.
            TransportError: On connection failures or a non-JSON body.
        """
        try:
            resp = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            try:
                payload = resp.json()
            except ValueError:
                payload = resp.text
            raise HttpStatusError(resp.status_code, payload)

        if self.rate_limit_sleep:
            time.sleep(self.rate_limit_sleep)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            logger.error("%s %s returned a non-JSON body", method, url)
            raise TransportError(f"Invalid JSON response: {exc}") from exc

    def get(self, url: str) -> Any:
        return self.request("GET", url)

    def post(self, url: str, json: dict | None = None) -> Any:
        return self.request("POST", url, json=json)

    def patch(self, url: str, json: dict | None = None) -> Any:
        return self.request("PATCH", url, json=json)

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
