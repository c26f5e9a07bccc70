"""
Custom exceptions and process exit codes for destream.

All destream exceptions inherit from DestreamError for easy catching. Every
error carries the exit code the CLI terminates with, so scripting callers get
a stable integer per failure class.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Stable process exit codes."""

    OK = 0
    UNHANDLED_ERROR = 1
    ELEVATED_SHELL = 10
    MISSING_FFMPEG = 11
    UNK_FFMPEG_ERROR = 12
    INVALID_VIDEO_GUID = 13
    NO_SESSION_INFO = 14
    INVALID_INPUT = 15
    INTERRUPTED = 130


class DestreamError(Exception):
    """Base exception for all destream errors.

    Attributes:
        message: Human-readable error message
        exit_code: Exit code the CLI uses when this error is fatal
        details: Additional diagnostic information
        suggestion: Recommended remediation steps
    """

    default_exit_code = ExitCode.UNHANDLED_ERROR

    def __init__(
        self,
        message: str,
        *,
        exit_code: ExitCode | None = None,
        details: dict[str, Any] | None = None,
        suggestion: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code if exit_code is not None else self.default_exit_code
        self.details = details or {}
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured dict for logging."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
            "exit_code": int(self.exit_code),
        }
        if self.details:
            result["details"] = self.details
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class ElevatedShellError(DestreamError):
    """Refusing to run as root/administrator."""

    default_exit_code = ExitCode.ELEVATED_SHELL

    def __init__(self, message: str = "Destream cannot run in an elevated shell"):
        super().__init__(
            message,
            suggestion="Run destream as a regular user.",
        )


class ToolNotFoundError(DestreamError):
    """Required external tool (ffmpeg) not found."""

    default_exit_code = ExitCode.MISSING_FFMPEG

    def __init__(self, tool_name: str, message: str | None = None):
        self.tool_name = tool_name
        msg = message or f"Required tool '{tool_name}' not found in PATH"
        super().__init__(
            msg,
            details={"tool": tool_name},
            suggestion=f"Install {tool_name} and make sure it is in your PATH.",
        )


class InputError(DestreamError):
    """Invalid command line input, input file or output template."""

    default_exit_code = ExitCode.INVALID_INPUT


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthenticationError(DestreamError):
    """No valid session could be obtained.

    Base class for every fatal outcome of the login and refresh flows.
    """

    default_exit_code = ExitCode.NO_SESSION_INFO

    def __init__(
        self,
        message: str,
        *,
        state: str | None = None,
        details: dict[str, Any] | None = None,
        suggestion: str = "",
    ):
        details = details or {}
        if state:
            details["state"] = state
        super().__init__(message, details=details, suggestion=suggestion)
        self.state = state


class InvalidCredentialsError(AuthenticationError):
    """A credential prompt was shown but no usable credentials were given."""

    def __init__(self, message: str = "Invalid login credentials", *, state: str | None = None):
        super().__init__(
            message,
            state=state,
            suggestion="Pass --username and --password (or set DESTREAM_USERNAME/DESTREAM_PASSWORD).",
        )


class LoginTimeoutError(AuthenticationError):
    """A navigation or element wait expired during login."""

    def __init__(self, message: str, *, state: str | None = None):
        super().__init__(
            message,
            state=state,
            suggestion="Check your credentials and network connection, then retry.",
        )


class SessionUnavailableError(AuthenticationError):
    """The in-page session object never became readable."""

    def __init__(self, message: str = "Could not read session info from the page", *, state: str | None = None):
        super().__init__(message, state=state)


class BrowserError(DestreamError):
    """Error raised by the browser automation layer."""

    default_exit_code = ExitCode.NO_SESSION_INFO


class SessionProbeError(DestreamError):
    """One attempt to extract the session from the page failed."""

    default_exit_code = ExitCode.NO_SESSION_INFO


# ---------------------------------------------------------------------------
# API / metadata
# ---------------------------------------------------------------------------


class ApiError(DestreamError):
    """The streaming platform API returned an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        exit_code: ExitCode | None = None,
    ):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, exit_code=exit_code, details=details)
        self.status_code = status_code
        self.url = url


class InvalidVideoError(DestreamError):
    """A video or group identifier could not be resolved."""

    default_exit_code = ExitCode.INVALID_VIDEO_GUID

    def __init__(self, message: str, *, video_id: str | None = None):
        super().__init__(
            message,
            details={"video_id": video_id} if video_id else None,
            suggestion="Make sure the URL points to a video you have access to.",
        )
        self.video_id = video_id


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


class DownloadError(DestreamError):
    """Error during a video download."""

    default_exit_code = ExitCode.UNK_FFMPEG_ERROR


class MuxingError(DownloadError):
    """ffmpeg reported an error while writing a video."""

    def __init__(
        self,
        message: str,
        *,
        video_id: str | None = None,
        out_path: str | None = None,
        stderr: str = "",
    ):
        details: dict[str, Any] = {}
        if video_id:
            details["video_id"] = video_id
        if out_path:
            details["out_path"] = out_path
        super().__init__(message, details=details)
        self.video_id = video_id
        self.out_path = out_path
        self.stderr = stderr
