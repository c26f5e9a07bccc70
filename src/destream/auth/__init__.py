"""
Authentication: browser login flow and session extraction.
"""

from destream.auth.browser import BrowserDriver, PlaywrightBrowser
from destream.auth.flow import LoginFlow, LoginOutcome, LoginState, LoginStatus
from destream.auth.login import interactive_login, outcome_error, refresh_session
from destream.auth.probe import PageSessionProbe, SessionProbe, probe_with_retry

__all__ = [
    "BrowserDriver",
    "PlaywrightBrowser",
    "LoginFlow",
    "LoginOutcome",
    "LoginState",
    "LoginStatus",
    "interactive_login",
    "outcome_error",
    "refresh_session",
    "PageSessionProbe",
    "SessionProbe",
    "probe_with_retry",
]
