"""
The sign-in / sign-up dialog as a small state machine.

The form validates locally, hands credentials to the SessionProvider, and
closes itself a moment after success so the confirmation can be read.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Callable, Optional

from planner.session import SessionProvider
from shared.constants import (
    MIN_PASSWORD_LENGTH,
    SIGNIN_CLOSE_DELAY_SECONDS,
    SIGNUP_CLOSE_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

SIGNIN_SUCCESS = "Successfully signed in!"
SIGNUP_SUCCESS = (
    "Account created successfully! Please check your email to verify your account."
)
UNEXPECTED_ERROR = "An unexpected error occurred. Please try again."


class AuthMode(StrEnum):
    SIGNIN = "signin"
    SIGNUP = "signup"


class AuthForm:
    def __init__(
        self,
        session: SessionProvider,
        *,
        mode: AuthMode | str = AuthMode.SIGNIN,
        signin_close_delay: float = SIGNIN_CLOSE_DELAY_SECONDS,
        signup_close_delay: float = SIGNUP_CLOSE_DELAY_SECONDS,
        min_password_length: int = MIN_PASSWORD_LENGTH,
        on_close: Callable[[], None] | None = None,
    ):
        self.session = session
        self.mode = AuthMode(mode)
        self.signin_close_delay = signin_close_delay
        self.signup_close_delay = signup_close_delay
        self.min_password_length = min_password_length
        self.on_close = on_close
        self.is_open = False
        self.submitting = False
        self._close_handle: Optional[asyncio.TimerHandle] = None
        self._reset_fields()

    def _reset_fields(self) -> None:
        self.email = ""
        self.password = ""
        self.full_name = ""
        self.error = ""
        self.success = ""

    def open(self, mode: AuthMode | str | None = None) -> None:
        if mode is not None:
            self.mode = AuthMode(mode)
        self.is_open = True

    def close(self) -> None:
        self._cancel_auto_close()
        self._reset_fields()
        was_open = self.is_open
        self.is_open = False
        if was_open and self.on_close:
            self.on_close()

    def switch_mode(self) -> None:
        self.mode = AuthMode.SIGNUP if self.mode == AuthMode.SIGNIN else AuthMode.SIGNIN
        self._reset_fields()

    def _cancel_auto_close(self) -> None:
        if self._close_handle is not None:
            self._close_handle.cancel()
            self._close_handle = None

    def _schedule_close(self, delay: float) -> None:
        self._cancel_auto_close()
        loop = asyncio.get_running_loop()
        self._close_handle = loop.call_later(delay, self.close)

    def validate(self) -> str:
        """Return the first problem with the current fields, or an empty string."""
        if self.mode == AuthMode.SIGNUP and not self.full_name.strip():
            return "Please enter your full name"
        if not self.email.strip():
            return "Please enter your email address"
        if not self.password:
            return "Please enter your password"
        if len(self.password) < self.min_password_length:
            return f"Password must be at least {self.min_password_length} characters"
        return ""

    async def submit(self) -> bool:
        if self.submitting:
            return False
        self.error = ""
        self.success = ""
        problem = self.validate()
        if problem:
            self.error = problem
            return False

        self.submitting = True
        try:
            if self.mode == AuthMode.SIGNIN:
                result = await self.session.sign_in(self.email.strip(), self.password)
                message, delay = SIGNIN_SUCCESS, self.signin_close_delay
            else:
                result = await self.session.sign_up(
                    self.email.strip(), self.password, self.full_name.strip()
                )
                message, delay = SIGNUP_SUCCESS, self.signup_close_delay
            if not result.ok:
                self.error = result.error.message
                return False
            self.success = message
            self._schedule_close(delay)
            return True
        except Exception:
            logger.exception("Unexpected error during %s", self.mode)
            self.error = UNEXPECTED_ERROR
            return False
        finally:
            self.submitting = False
