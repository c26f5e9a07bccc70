"""
Browser-backed session acquisition.

Both entry points own their browser: it is launched on entry and closed on
every exit path. A fresh Session is written to the cache before the browser
is closed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from destream.auth.browser import PlaywrightBrowser
from destream.auth.flow import LoginFlow, LoginOutcome, LoginStatus
from destream.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    InvalidVideoError,
    LoginTimeoutError,
    SessionUnavailableError,
)
from destream.parsing.input import extract_guid

if TYPE_CHECKING:
    from destream.auth.browser import BrowserDriver
    from destream.auth.probe import SessionProbe
    from destream.cache.token_cache import TokenCache
    from destream.config.loader import LoginPolicy
    from destream.models.session import Session

logger = logging.getLogger(__name__)

BrowserFactory = Callable[[Path | None], "BrowserDriver"]


def _default_browser(user_data_dir: Path | None) -> BrowserDriver:
    return PlaywrightBrowser(headless=True, user_data_dir=user_data_dir)


def outcome_error(outcome: LoginOutcome) -> AuthenticationError:
    """Map a failed LoginOutcome to the exception the CLI reports."""
    state = outcome.state.value
    if outcome.status is LoginStatus.INVALID_CREDENTIALS:
        return InvalidCredentialsError(outcome.message or "Invalid login credentials", state=state)
    if outcome.status is LoginStatus.TIMED_OUT:
        return LoginTimeoutError(outcome.message or "Login timed out", state=state)
    return SessionUnavailableError(outcome.message or "Could not read session info", state=state)


def _run(
    run: Callable[[LoginFlow], LoginOutcome],
    *,
    store: TokenCache | None,
    policy: LoginPolicy | None,
    user_data_dir: Path | None,
    browser_factory: BrowserFactory | None,
    probe: SessionProbe | None,
    sleep: Callable[[float], None],
) -> Session:
    driver = (browser_factory or _default_browser)(user_data_dir)
    try:
        flow = LoginFlow(driver, policy=policy, probe=probe, sleep=sleep)
        outcome = run(flow)
        if not outcome.ok:
            raise outcome_error(outcome)

        if store is not None and store.write(outcome.session):
            logger.info("Wrote access token to token cache.")
        return outcome.session
    finally:
        logger.info("At this point Chromium's job is done, shutting it down...")
        driver.close()


def interactive_login(
    url: str,
    username: str | None = None,
    password: str | None = None,
    *,
    store: TokenCache | None = None,
    policy: LoginPolicy | None = None,
    user_data_dir: Path | None = None,
    browser_factory: BrowserFactory | None = None,
    probe: SessionProbe | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Session:
    """Log in through the browser and return the extracted Session.

    Args:
        url: Login page URL
        username: Account name typed into the email prompt
        password: Password typed into the identity provider's prompt
        store: Session cache written on success
        policy: Endpoints, timeouts and probe policy
        user_data_dir: Persistent browser profile (keep login cookies)
        browser_factory: Creates the browser driver; defaults to Playwright
        probe: Session extraction strategy
        sleep: Sleep function used between probe attempts

    Raises:
        InvalidCredentialsError: A prompt appeared but credentials are missing
        LoginTimeoutError: A redirect or element never showed up
        SessionUnavailableError: The session object never became readable
    """
    logger.info("Launching headless Chrome to perform the OpenID Connect dance...")
    return _run(
        lambda flow: flow.login(url, username, password),
        store=store,
        policy=policy,
        user_data_dir=user_data_dir,
        browser_factory=browser_factory,
        probe=probe,
        sleep=sleep,
    )


def refresh_session(
    video_url: str,
    *,
    store: TokenCache | None = None,
    policy: LoginPolicy | None = None,
    user_data_dir: Path | None = None,
    browser_factory: BrowserFactory | None = None,
    probe: SessionProbe | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Session:
    """Obtain a fresh Session by reopening a video page.

    Requires the login cookies of a previous interactive_login in
    ``user_data_dir``.

    Raises:
        InvalidVideoError: The URL does not end in a video id
        AuthenticationError: The refresh failed (see interactive_login)
    """
    video_id = extract_guid(video_url)
    if video_id is None:
        raise InvalidVideoError(f"No video id in {video_url}")

    logger.info("Refreshing session...")
    return _run(
        lambda flow: flow.refresh(video_url, video_id),
        store=store,
        policy=policy,
        user_data_dir=user_data_dir,
        browser_factory=browser_factory,
        probe=probe,
        sleep=sleep,
    )
