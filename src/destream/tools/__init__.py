"""
External tool wrappers and console progress.
"""

from destream.tools.base import ToolResult, VideoTool
from destream.tools.ffmpeg import (
    FFmpegTool,
    MuxCommand,
    MuxError,
    MuxProcess,
    MuxProgress,
    MuxSuccess,
)
from destream.tools.progress import ChunkProgressBar

__all__ = [
    "ToolResult",
    "VideoTool",
    "FFmpegTool",
    "MuxCommand",
    "MuxError",
    "MuxProcess",
    "MuxProgress",
    "MuxSuccess",
    "ChunkProgressBar",
]
