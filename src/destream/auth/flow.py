"""
Login and session refresh as an explicit state machine.

Login:

    START -> NAVIGATED_TO_LOGIN_PAGE -+-> NO_PROMPT_DETECTED ----------------+
                                      |                                      |
                                      +-> CREDENTIAL_PROMPT_DETECTED          |
                                          -> USERNAME_SUBMITTED               |
                                          -> WAITING_FOR_IDP_REDIRECT         |
                                          -> PASSWORD_SUBMITTED               |
                                          -> WAITING_FOR_FINAL_REDIRECT <----+
                                          -> LOGGED_IN -> SESSION_EXTRACTED

Any step may end in FAILED. Every run returns a LoginOutcome instead of
raising; the caller decides what a failure means.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from destream.auth.probe import PageSessionProbe, SessionProbe, probe_with_retry
from destream.config.loader import LoginPolicy
from destream.exceptions import BrowserError

if TYPE_CHECKING:
    from destream.auth.browser import BrowserDriver
    from destream.models.session import Session

logger = logging.getLogger(__name__)

EMAIL_INPUT = 'input[type="email"]'
PASSWORD_INPUT = 'input[type="password"]'
SUBMIT_INPUT = 'input[type="submit"]'
IDP_SUBMIT_BUTTON = "#submitButton"


class LoginState(Enum):
    START = "start"
    NAVIGATED_TO_LOGIN_PAGE = "navigated_to_login_page"
    CREDENTIAL_PROMPT_DETECTED = "credential_prompt_detected"
    NO_PROMPT_DETECTED = "no_prompt_detected"
    USERNAME_SUBMITTED = "username_submitted"
    WAITING_FOR_IDP_REDIRECT = "waiting_for_idp_redirect"
    PASSWORD_SUBMITTED = "password_submitted"
    WAITING_FOR_FINAL_REDIRECT = "waiting_for_final_redirect"
    LOGGED_IN = "logged_in"
    SESSION_EXTRACTED = "session_extracted"
    FAILED = "failed"


class LoginStatus(Enum):
    OK = "ok"
    TIMED_OUT = "timed_out"
    INVALID_CREDENTIALS = "invalid_credentials"
    NO_SESSION = "no_session"


@dataclass(frozen=True)
class LoginOutcome:
    """Result of a login or refresh run.

    Attributes:
        status: How the run ended
        session: The extracted Session when status is OK
        state: Last state reached before the run ended
        message: Human-readable reason for failures
    """

    status: LoginStatus
    session: Session | None = None
    state: LoginState = LoginState.START
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is LoginStatus.OK


class LoginFlow:
    """Drive a browser through the login or refresh sequence.

    Args:
        driver: Page to drive
        policy: Endpoints, timeouts and probe retry policy
        probe: Session extraction strategy
        sleep: Sleep function used between probe attempts
    """

    def __init__(
        self,
        driver: BrowserDriver,
        policy: LoginPolicy | None = None,
        probe: SessionProbe | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.policy = policy or LoginPolicy()
        self.probe = probe or PageSessionProbe()
        self.sleep = sleep
        self.state = LoginState.START
        self.history: list[LoginState] = [LoginState.START]

    def _enter(self, state: LoginState) -> None:
        logger.debug(f"Login flow: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _fail(self, status: LoginStatus, message: str) -> LoginOutcome:
        reached = self.state
        self._enter(LoginState.FAILED)
        return LoginOutcome(status=status, state=reached, message=message)

    def login(self, url: str, username: str | None = None, password: str | None = None) -> LoginOutcome:
        """Log in starting at ``url``.

        When the page shows no credential prompt the stored browser cookies
        are assumed to be valid and no credentials are submitted.
        """
        policy = self.policy
        try:
            logger.info("Navigating to login page...")
            self.driver.goto(url)
            self._enter(LoginState.NAVIGATED_TO_LOGIN_PAGE)

            if self.driver.wait_for_selector(EMAIL_INPUT, policy.prompt_timeout):
                self._enter(LoginState.CREDENTIAL_PROMPT_DETECTED)
                outcome = self._submit_credentials(username, password)
                if outcome is not None:
                    return outcome
            else:
                self._enter(LoginState.NO_PROMPT_DETECTED)
                logger.info("Login skipped")

            self._enter(LoginState.WAITING_FOR_FINAL_REDIRECT)
            suffix = policy.app_root_suffix
            if not self.driver.wait_for_url(lambda u: u.endswith(suffix), policy.redirect_timeout):
                return self._fail(
                    LoginStatus.TIMED_OUT, f"Timed out waiting for a page ending in {suffix}"
                )
        except BrowserError as e:
            return self._fail(LoginStatus.TIMED_OUT, e.message)

        self._enter(LoginState.LOGGED_IN)
        logger.info("We are logged in.")
        return self._extract()

    def _submit_credentials(self, username: str | None, password: str | None) -> LoginOutcome | None:
        """Run the credential chain. Returns an outcome only on failure."""
        policy = self.policy
        if not username or not password:
            return self._fail(LoginStatus.INVALID_CREDENTIALS, "Invalid login credentials")

        self.driver.type(EMAIL_INPUT, username)
        self.driver.click(SUBMIT_INPUT)
        self._enter(LoginState.USERNAME_SUBMITTED)

        self._enter(LoginState.WAITING_FOR_IDP_REDIRECT)
        idp = policy.idp_url_prefix
        if not self.driver.wait_for_url(lambda u: u.startswith(idp), policy.redirect_timeout):
            return self._fail(LoginStatus.TIMED_OUT, f"Timed out waiting for {idp}")
        if not self.driver.wait_for_selector(PASSWORD_INPUT, policy.prompt_timeout):
            return self._fail(LoginStatus.TIMED_OUT, "Password prompt did not appear")

        self.driver.type(PASSWORD_INPUT, password)
        self.driver.click(IDP_SUBMIT_BUTTON)
        self._enter(LoginState.PASSWORD_SUBMITTED)

        provider = policy.provider_login_prefix
        if not self.driver.wait_for_url(lambda u: u.startswith(provider), policy.redirect_timeout):
            return self._fail(LoginStatus.TIMED_OUT, f"Timed out waiting for {provider}")
        if not self.driver.wait_for_selector(SUBMIT_INPUT, policy.prompt_timeout):
            return self._fail(LoginStatus.TIMED_OUT, '"Stay signed in" prompt did not appear')
        self.driver.click(SUBMIT_INPUT)
        return None

    def refresh(self, video_url: str, video_id: str) -> LoginOutcome:
        """Reload a video page and read the session it carries.

        Relies on cookies from a previous login; no credentials are typed.
        """
        policy = self.policy
        try:
            self.driver.goto(video_url)
            self._enter(LoginState.NAVIGATED_TO_LOGIN_PAGE)
            self._enter(LoginState.WAITING_FOR_FINAL_REDIRECT)
            if not self.driver.wait_for_url(lambda u: video_id in u, policy.refresh_timeout):
                return self._fail(
                    LoginStatus.TIMED_OUT, f"Timed out waiting for the page of video {video_id}"
                )
        except BrowserError as e:
            return self._fail(LoginStatus.TIMED_OUT, e.message)

        self._enter(LoginState.LOGGED_IN)
        return self._extract()

    def _extract(self) -> LoginOutcome:
        policy = self.policy
        session = probe_with_retry(
            self.probe,
            self.driver,
            attempts=policy.probe_attempts,
            delay=policy.probe_delay,
            sleep=self.sleep,
        )
        if session is None:
            return self._fail(
                LoginStatus.NO_SESSION,
                f"Session info not available after {policy.probe_attempts} attempts",
            )
        self._enter(LoginState.SESSION_EXTRACTED)
        return LoginOutcome(status=LoginStatus.OK, session=session, state=self.state)
