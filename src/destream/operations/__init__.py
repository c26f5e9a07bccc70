"""
High-level operations for destream.
"""

from destream.operations.download import DownloadSettings, download_videos, simulate_videos

__all__ = ["DownloadSettings", "download_videos", "simulate_videos"]
