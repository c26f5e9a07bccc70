"""
Data models for destream.

Provides dataclasses for sessions, video descriptors and download tasks.
"""

from destream.models.session import Session
from destream.models.task import DownloadTask, TaskOutcome
from destream.models.video import Video

__all__ = [
    "Session",
    "Video",
    "DownloadTask",
    "TaskOutcome",
]
