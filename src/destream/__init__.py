"""
destream - Save videos from Microsoft Stream.

1. Log in through a headless browser (or reuse the cached session)
2. Resolve video and group URLs through the platform API
3. Mux every HLS stream to disk with ffmpeg, with a progress bar
"""

from destream.exceptions import (
    ApiError,
    AuthenticationError,
    DestreamError,
    DownloadError,
    ExitCode,
    InputError,
    InvalidVideoError,
    MuxingError,
    ToolNotFoundError,
)
from destream.models import DownloadTask, Session, TaskOutcome, Video

__version__ = "2.1.0"

__all__ = [
    "__version__",
    "ApiError",
    "AuthenticationError",
    "DestreamError",
    "DownloadError",
    "ExitCode",
    "InputError",
    "InvalidVideoError",
    "MuxingError",
    "ToolNotFoundError",
    "DownloadTask",
    "Session",
    "TaskOutcome",
    "Video",
]
