"""
Per-video download task state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from destream.models.session import Session
    from destream.models.video import Video


class TaskOutcome(Enum):
    """Terminal (or pending) state of a download task."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DownloadTask:
    """Execution context for one video of the batch.

    ``session`` is the snapshot the task was started with; ``progress`` only
    moves forward and never exceeds ``video.total_chunks``.
    """

    video: Video
    session: Session
    progress: int = 0
    outcome: TaskOutcome = TaskOutcome.PENDING

    def advance(self, chunks: int) -> int:
        """Move progress forward to ``chunks``, clamped to the valid range.

        Returns:
            The progress value after the update.
        """
        bounded = min(max(chunks, 0), self.video.total_chunks)
        if bounded > self.progress:
            self.progress = bounded
        return self.progress

    def complete(self) -> None:
        """Mark the task successful with progress at the total."""
        self.progress = self.video.total_chunks
        self.outcome = TaskOutcome.SUCCESS
