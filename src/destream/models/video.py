"""
Video descriptor resolved from the platform API.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Video:
    """Resolved metadata for one stream.

    ``total_chunks`` is the duration expressed in progress chunks (see
    ``destream.utils.formatting.duration_to_chunks``). ``out_path`` is empty
    until output paths are assigned for the batch.
    """

    id: str
    title: str
    playback_url: str
    poster_image_url: str | None
    total_chunks: int
    publish_date: str
    captions_url: str | None = None
    out_path: str = ""

    # Template-only fields
    publish_time: str = ""
    duration: str = ""
    author: str = ""
    author_email: str = ""
    unique_id: str = ""

    def __post_init__(self) -> None:
        if self.total_chunks <= 0:
            raise ValueError(f"total_chunks must be positive, got {self.total_chunks}")

    def template_fields(self) -> dict[str, str]:
        """Values available to output filename templates."""
        return {
            "title": self.title,
            "duration": self.duration,
            "publishDate": self.publish_date,
            "publishTime": self.publish_time,
            "author": self.author,
            "authorEmail": self.author_email,
            "uniqueId": self.unique_id,
        }
