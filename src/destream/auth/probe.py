"""
Session extraction from a logged-in page.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from destream.api.schemas import SessionInfo
from destream.exceptions import BrowserError, SessionProbeError

if TYPE_CHECKING:
    from destream.auth.browser import BrowserDriver
    from destream.models.session import Session

logger = logging.getLogger(__name__)

SESSION_INFO_EXPRESSION = """() => ({
    AccessToken: sessionInfo.AccessToken,
    ApiGatewayUri: sessionInfo.ApiGatewayUri,
    ApiGatewayVersion: sessionInfo.ApiGatewayVersion
})"""


class SessionProbe(Protocol):
    """Reads a Session out of the current page.

    Raises SessionProbeError when the session is not (yet) available.
    """

    def extract(self, driver: BrowserDriver) -> Session: ...


class PageSessionProbe:
    """Read the platform's global ``sessionInfo`` object."""

    def __init__(self, expression: str = SESSION_INFO_EXPRESSION):
        self.expression = expression

    def extract(self, driver: BrowserDriver) -> Session:
        try:
            data = driver.evaluate(self.expression)
        except BrowserError as e:
            raise SessionProbeError(f"sessionInfo not readable: {e.message}") from e

        if not isinstance(data, dict):
            raise SessionProbeError("sessionInfo is not an object")
        try:
            return SessionInfo.model_validate(data).to_session()
        except ValidationError as e:
            raise SessionProbeError(f"sessionInfo is incomplete: {e.error_count()} error(s)") from e


def probe_with_retry(
    probe: SessionProbe,
    driver: BrowserDriver,
    attempts: int,
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Session | None:
    """Run ``probe`` until it succeeds or ``attempts`` are used up.

    Args:
        probe: Extraction strategy
        driver: Page to read from
        attempts: Maximum number of tries (at least one is made)
        delay: Seconds to wait between tries
        sleep: Sleep function, replaceable in tests

    Returns:
        The Session, or None if every attempt failed
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return probe.extract(driver)
        except SessionProbeError as e:
            logger.debug(f"Session probe attempt {attempt}/{attempts} failed: {e.message}")
        if attempt < attempts:
            sleep(delay)
    return None
