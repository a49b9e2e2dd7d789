# farm/api_client.py
from __future__ import annotations

import base64
import http.client
import json
import urllib.error
import urllib.request
from typing import Any, Optional, Tuple
from urllib.parse import quote, urljoin


class FarmError(Exception):
    """Raised when a request never produced a complete HTTP response."""
    pass


class FarmClient:
    """HTTP client for the Sauce Labs js-tests endpoints."""

    def __init__(self, base_url: str, username: str, access_key: str, timeout: float = 60.0):
        """
        Initialize farm client.

        Args:
            base_url: REST base URL (e.g., "https://saucelabs.com/rest/v1")
            username: Sauce Labs user name
            access_key: Sauce Labs access key
            timeout: Socket timeout in seconds for a single request
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.access_key = access_key
        self.timeout = timeout

    def _auth_header(self) -> str:
        token = f"{self.username}:{self.access_key}".encode("utf-8")
        return "Basic " + base64.b64encode(token).decode("ascii")

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[dict] = None,
    ) -> Tuple[int, Any]:
        """
        Make an HTTP request to the farm.

        Unlike a typical client, HTTP error statuses are returned rather than
        raised: callers decide what a non-200 response means.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path relative to the user root (e.g., "/js-tests")
            data: Optional JSON data to send in request body

        Returns:
            (status_code, parsed JSON body). The body is {} when empty and the
            raw text when it is not JSON.

        Raises:
            FarmError: If no HTTP response was received
        """
        user_root = f"{self.base_url}/{quote(self.username, safe='')}/"
        url = urljoin(user_root, path.lstrip("/"))

        req_headers = {
            "Content-Type": "application/json",
            "Authorization": self._auth_header(),
        }

        req_data = None
        if data is not None:
            req_data = json.dumps(data).encode("utf-8")

        req = urllib.request.Request(url, data=req_data, headers=req_headers, method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return response.status, _decode(response.read())
        except urllib.error.HTTPError as e:
            try:
                error_body = e.read() if e.fp else b""
            except (http.client.HTTPException, OSError) as read_error:
                raise FarmError(f"Network error: {read_error!r}") from read_error
            return e.code, _decode(error_body)
        except urllib.error.URLError as e:
            raise FarmError(f"Network error: {e.reason}") from e
        except OSError as e:
            # socket timeouts surface as plain OSError subclasses
            raise FarmError(f"Network error: {e}") from e
        except http.client.HTTPException as e:
            # truncated bodies and garbled status lines
            raise FarmError(f"Network error: {e!r}") from e

    def submit_job(self, options: dict) -> Tuple[int, Any]:
        """Start a js-tests job with the given options."""
        return self._request("POST", "/js-tests", data=options)

    def job_status(self, job_id: str) -> Tuple[int, Any]:
        """Fetch the status of a single js-tests job."""
        return self._request("POST", "/js-tests/status", data={"js tests": [job_id]})


def _decode(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
