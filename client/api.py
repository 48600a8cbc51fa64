"""
client/api.py -- Thin HTTP client for the irrigation account API.

One requests.Session per ApiClient for connection pooling. Every call sends
and expects JSON; when a token is set it is attached as
"Authorization: Bearer <token>". login() stores the returned token so
follow-up activity calls are authenticated automatically.

Non-2xx responses raise ApiError carrying the status code and the
{"error": {"code", "message"}} envelope from the server. Network failures
raise ApiError with status_code 0 so callers handle one exception type.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from core.config import get_client_settings

logger = logging.getLogger("irrigation.client")


class ApiError(Exception):
    """A failed API call. status_code is 0 when the server was never reached."""

    def __init__(self, status_code: int, message: str, code: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class ApiClient:
    """Typed wrapper around the REST endpoints.

    Usage:
        client = ApiClient("http://localhost:4000")
        client.register("a@x.com", "pw1", name="Ana")
        client.login("a@x.com", "pw1")
        client.create_activity("valve_opened", {"zone": 3})
        entries = client.list_activity(limit=20)
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: float = 10) -> None:
        self.base_url = (base_url or get_client_settings().api_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = requests.Session()
        self._session.max_redirects = 3

    def _request(self, method: str, path: str, body: Any = None, params: Optional[dict] = None) -> Any:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ApiError(0, f"Could not reach {self.base_url}") from e

        if not resp.ok:
            raise _error_from_response(resp)
        if not resp.content:
            return None
        return resp.json()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, name: Optional[str] = None) -> dict:
        """Create an account. Returns {"id", "email"}."""
        return self._request("POST", "/api/auth/register", {"email": email, "password": password, "name": name})

    def login(self, email: str, password: str) -> dict:
        """Log in and keep the token. Returns {"token", "user": {...}}."""
        data = self._request("POST", "/api/auth/login", {"email": email, "password": password})
        self.token = data["token"]
        return data

    def me(self) -> dict:
        return self._request("GET", "/api/auth/me")

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    def create_activity(self, action: str, metadata: Optional[dict[str, Any]] = None) -> dict:
        return self._request("POST", "/api/activity", {"action": action, "metadata": metadata})

    def list_activity(self, limit: int = 50, offset: int = 0) -> list[dict]:
        """The caller's entries, newest first."""
        return self._request("GET", "/api/activity", params={"limit": limit, "offset": offset})

    def health(self) -> dict:
        return self._request("GET", "/health")

    def close(self) -> None:
        self._session.close()


def _error_from_response(resp: requests.Response) -> ApiError:
    """Build an ApiError from the server's error envelope, or the raw text."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return ApiError(resp.status_code, error["message"], error.get("code", ""))
    return ApiError(resp.status_code, resp.text or f"Request failed: {resp.status_code}")
