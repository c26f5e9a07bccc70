"""
Streaming platform API: client, schemas and metadata resolution.
"""

from destream.api.client import ApiClient, build_http_session
from destream.api.metadata import fetch_group_video_ids, fetch_video_info
from destream.api.schemas import SessionInfo

__all__ = [
    "ApiClient",
    "build_http_session",
    "fetch_group_video_ids",
    "fetch_video_info",
    "SessionInfo",
]
