"""
System utilities for finding executables and inspecting the environment.
"""

import os
import shutil
import sys
from pathlib import Path


def find_tool(name: str) -> str:
    """Find executable, checking venv first.

    Args:
        name: Tool name (e.g., "ffmpeg")

    Returns:
        Path to executable
    """
    # Check venv bin directory first
    venv = Path(sys.prefix) / "bin" / name
    if venv.exists():
        return str(venv)

    # Fall back to system PATH
    return shutil.which(name) or name


def is_elevated() -> bool:
    """Return True when running as root or as a Windows administrator."""
    if sys.platform == "win32":
        import ctypes

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return hasattr(os, "geteuid") and os.geteuid() == 0


def terminal_columns(stream=None) -> int | None:
    """Return the column count of the terminal behind ``stream``.

    Returns:
        Number of columns, or None when the stream is not a terminal
        (pipes, some Cygwin/MSYS consoles)
    """
    stream = stream or sys.stdout
    try:
        columns = os.get_terminal_size(stream.fileno()).columns
    except (AttributeError, OSError, ValueError):
        return None
    return columns or None
