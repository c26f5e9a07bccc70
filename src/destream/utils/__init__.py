"""
Utility functions for destream.
"""

from destream.utils.formatting import (
    duration_to_chunks,
    iso_duration_to_seconds,
    sanitize_filename,
    timemark_to_chunk,
    timemark_to_seconds,
)
from destream.utils.interrupt import on_interrupt
from destream.utils.logging import log_timed, setup_logging
from destream.utils.system import find_tool, is_elevated, terminal_columns

__all__ = [
    "duration_to_chunks",
    "iso_duration_to_seconds",
    "sanitize_filename",
    "timemark_to_chunk",
    "timemark_to_seconds",
    "on_interrupt",
    "log_timed",
    "setup_logging",
    "find_tool",
    "is_elevated",
    "terminal_columns",
]
