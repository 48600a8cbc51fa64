"""
client/auth_flow.py -- Form-driven login/register flow over ApiClient.

AuthFlow holds what a login screen holds: which view is showing, the field
values, and one inline error or success string. submit() is the single
action; it dispatches on the current view and always goes through the API,
so the server stays the only authority on who is registered.

Transitions:
  any view, empty email or password -> error, no request sent
  REGISTER, 201                     -> success, view LOGIN, fields cleared
  REGISTER, 409                     -> error "Email already in use."
  LOGIN, 200                        -> success, token kept, on_success scheduled
  LOGIN, 401                        -> error "Invalid credentials"
  anything else                     -> generic error, failure logged

error and success are both cleared at the start of every submit().
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Optional

from client.api import ApiClient, ApiError

logger = logging.getLogger("irrigation.client")

MSG_REQUIRED = "Email and password are required."
MSG_EMAIL_TAKEN = "Email already in use."
MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_GENERIC = "An error occurred. Please try again."
MSG_REGISTERED = "Registration successful! Please log in."
MSG_LOGGED_IN = "Login successful!"

SUCCESS_DELAY_SECONDS = 1.0

Scheduler = Callable[[float, Callable[[], None]], None]


class View(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


def _timer_scheduler(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class AuthFlow:
    """Login/register state machine.

    Args:
        client:     ApiClient used for every submit.
        on_success: Called once after a successful login, SUCCESS_DELAY_SECONDS
                    later so the success message is visible first.
        scheduler:  (delay, callback) -> None. Defaults to a daemon
                    threading.Timer; tests pass one that calls immediately.
    """

    def __init__(
        self,
        client: ApiClient,
        on_success: Optional[Callable[[], None]] = None,
        scheduler: Scheduler = _timer_scheduler,
        success_delay: float = SUCCESS_DELAY_SECONDS,
    ) -> None:
        self.client = client
        self.on_success = on_success
        self.scheduler = scheduler
        self.success_delay = success_delay

        self.view = View.LOGIN
        self.email = ""
        self.password = ""
        self.name = ""
        self.error = ""
        self.success = ""
        self.token: Optional[str] = None
        self.user: Optional[dict] = None

    def toggle_view(self) -> View:
        """Switch between LOGIN and REGISTER, dropping any message on screen."""
        self.view = View.REGISTER if self.view is View.LOGIN else View.LOGIN
        self.error = ""
        self.success = ""
        return self.view

    def submit(self) -> bool:
        """Run the action for the current view. Returns True on success."""
        self.error = ""
        self.success = ""

        if not self.email or not self.password:
            self.error = MSG_REQUIRED
            return False

        if self.view is View.REGISTER:
            return self._register()
        return self._login()

    def _register(self) -> bool:
        try:
            self.client.register(self.email, self.password, name=self.name or None)
        except ApiError as e:
            self.error = MSG_EMAIL_TAKEN if e.status_code == 409 else self._describe(e)
            return False
        self.success = MSG_REGISTERED
        self.view = View.LOGIN
        self.email = ""
        self.password = ""
        self.name = ""
        return True

    def _login(self) -> bool:
        try:
            data = self.client.login(self.email, self.password)
        except ApiError as e:
            self.error = MSG_INVALID_CREDENTIALS if e.status_code == 401 else self._describe(e)
            return False
        self.token = data["token"]
        self.user = data["user"]
        self.password = ""
        self.success = MSG_LOGGED_IN
        if self.on_success is not None:
            self.scheduler(self.success_delay, self.on_success)
        return True

    @staticmethod
    def _describe(e: ApiError) -> str:
        # 400s carry a message meant for the user; everything else is opaque.
        if e.status_code == 400 and e.message:
            return e.message
        logger.error("Auth request failed (%s %s): %s", e.status_code, e.code, e.message)
        return MSG_GENERIC
