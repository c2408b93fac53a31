"""Expense service API interactions.

``RequestExecutor`` is the only place that talks HTTP. It attaches the
bearer token, retries transient failures with a linearly growing delay and
turns every outcome into a ``Result``; no exception escapes ``execute``.
"""

import threading
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import requests

from tally.domain.results import Err, ErrorKind, Ok, Result
from tally.logging_setup import get_logger
from tally.store.storage import TOKEN_KEY, ClientStorage

logger = get_logger(__name__)

EXPENSES_ENDPOINT = "/api/expenses"
MAX_ATTEMPTS = 5
BASE_DELAY = 1.0
SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."

_NO_EXPIRY = object()


def expense_endpoint(expense_id: str) -> str:
    """Build the endpoint of a single expense."""
    return f"{EXPENSES_ENDPOINT}/{quote(str(expense_id), safe='')}"


def _failure_message(response: requests.Response) -> str:
    """Extract a failure message from an error response.

    Uses the JSON body's ``message`` when there is one.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP error! status: {response.status_code}"


def _decode_body(response: requests.Response) -> Any:
    """Decode a success body; empty bodies decode to None.

    Raises:
        ValueError: If the body is not valid JSON.
    """
    if response.status_code == 204 or not response.content or not response.content.strip():
        return None
    return response.json()


class RequestExecutor:
    """Executes requests against the expense service.

    Args:
        base_url: Service root, e.g. "http://localhost:5000".
        storage: Client storage holding the bearer token.
        session: HTTP session. A new ``requests.Session`` if None.
        max_attempts: Attempts per call, including the first.
        base_delay: Seconds; the wait after attempt n (1-based) is n * base_delay.
        timeout: Per-request timeout in seconds, or None to wait indefinitely.
        sleep: Function used to wait between attempts.
        on_session_expired: Called when the service answers 401, once per expired token.
    """

    def __init__(
        self,
        base_url: str,
        storage: ClientStorage,
        session: requests.Session | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_session_expired: Callable[[], None] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self.session = session if session is not None else requests.Session()
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.timeout = timeout
        self.sleep = sleep
        self.on_session_expired = on_session_expired
        # Token whose expiry has been handled; concurrent 401s for it are handled once
        self._expired_token: object = _NO_EXPIRY
        self._expiry_lock = threading.Lock()

    def headers(self) -> dict[str, str]:
        """Build request headers, with the bearer token when one is stored."""
        return self._build_headers(self.storage.get(TOKEN_KEY))

    def _build_headers(self, token: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def execute(self, endpoint: str, method: str = "GET", body: Any = None) -> Result:
        """Execute a request with retries.

        Args:
            endpoint: Path below the base URL, e.g. "/api/expenses".
            method: HTTP method.
            body: JSON-serializable request body, if any.

        Returns:
            Ok with the decoded JSON body (None for empty bodies),
            Err(SESSION_EXPIRED) on 401, or Err(NETWORK_FAILURE) with the
            last attempt's message once all attempts have failed.
        """
        url = f"{self.base_url}{endpoint}"
        token = self.storage.get(TOKEN_KEY)
        headers = self._build_headers(token)
        message = ""

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.request(method, url, headers=headers, json=body, timeout=self.timeout)
            except requests.RequestException as e:
                message = str(e) or type(e).__name__
            else:
                if response.status_code == 401:
                    return self._expire_session(method, endpoint, token)

                if response.ok:
                    try:
                        return Ok(_decode_body(response))
                    except ValueError as e:
                        message = f"Invalid response body: {e}"
                else:
                    message = _failure_message(response)

            if attempt == self.max_attempts:
                break

            delay = attempt * self.base_delay
            logger.warning(
                "%s %s failed (attempt %d/%d): %s; retrying in %.1fs",
                method,
                endpoint,
                attempt,
                self.max_attempts,
                message,
                delay,
            )
            self.sleep(delay)

        logger.error("%s %s failed after %d attempts: %s", method, endpoint, self.max_attempts, message)
        return Err(ErrorKind.NETWORK_FAILURE, message)

    def _expire_session(self, method: str, endpoint: str, token: str | None) -> Err:
        with self._expiry_lock:
            # A tokenless request after an expiry belongs to the same session
            already_expired = token is None and self._expired_token is not _NO_EXPIRY
            first = self._expired_token != token and not already_expired
            if first:
                self._expired_token = token
        if first:
            logger.warning("%s %s: session expired, clearing stored token", method, endpoint)
            self.storage.remove(TOKEN_KEY)
            if self.on_session_expired is not None:
                self.on_session_expired()
        return Err(ErrorKind.SESSION_EXPIRED, SESSION_EXPIRED_MESSAGE)
