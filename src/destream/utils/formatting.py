"""
Text and time formatting utilities.
"""

from __future__ import annotations

import math
import re
from datetime import datetime

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?"
    r"(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)

# Characters not allowed in filenames on Windows (the strictest target)
_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}


def timemark_to_seconds(timemark: str) -> float | None:
    """Parse an ffmpeg timemark (``HH:MM:SS[.ffffff]``) into seconds.

    Negative timemarks, which ffmpeg reports before the first packet, are
    clamped to zero.

    Args:
        timemark: Timemark string from ffmpeg progress output

    Returns:
        Elapsed seconds, or None if the value is not a timemark (e.g. "N/A")
    """
    text = timemark.strip()
    negative = text.startswith("-")
    parts = text.lstrip("-").split(":")
    if len(parts) != 3:
        return None

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = float(parts[2])
    except ValueError:
        return None

    if negative:
        return 0.0
    return hours * 3600 + minutes * 60 + seconds


def timemark_to_chunk(timemark: str, seconds_per_chunk: float) -> int | None:
    """Convert an ffmpeg timemark into whole progress chunks.

    Args:
        timemark: Timemark string from ffmpeg progress output
        seconds_per_chunk: Conversion ratio

    Returns:
        Number of completed chunks, or None if the timemark is unparsable
    """
    seconds = timemark_to_seconds(timemark)
    if seconds is None:
        return None
    return int(seconds // seconds_per_chunk)


def iso_duration_to_seconds(duration: str) -> float:
    """Parse an ISO 8601 duration such as ``PT1H2M3.5S``.

    Raises:
        ValueError: If the string is not an ISO 8601 duration
    """
    match = _ISO_DURATION_RE.match(duration.strip())
    if not match or duration.strip() in ("P", "PT"):
        raise ValueError(f"Invalid ISO 8601 duration: {duration!r}")

    values = {k: float(v) if v else 0.0 for k, v in match.groupdict().items()}
    return (
        values["days"] * 86400
        + values["hours"] * 3600
        + values["minutes"] * 60
        + values["seconds"]
    )


def duration_to_chunks(seconds: float, seconds_per_chunk: float) -> int:
    """Express a duration in progress chunks (always at least one)."""
    return max(1, math.ceil(seconds / seconds_per_chunk))


def format_duration(seconds: float) -> str:
    """Format seconds as ``HH.MM.SS`` (filename safe)."""
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}.{minutes:02d}.{secs:02d}"


def split_published(published: str) -> tuple[str, str]:
    """Split an ISO timestamp into ``(YYYY-MM-DD, HH.MM.SS)``.

    Unparsable values fall back to the raw date prefix and an empty time.
    """
    try:
        stamp = datetime.fromisoformat(published.strip().replace("Z", "+00:00"))
    except ValueError:
        return published[:10], ""
    return stamp.strftime("%Y-%m-%d"), stamp.strftime("%H.%M.%S")


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """Make a string safe to use as a filename on every platform."""
    cleaned = _UNSAFE_FILENAME_RE.sub(replacement, name).strip().rstrip(". ")
    if cleaned.split(".")[0].upper() in _RESERVED_NAMES:
        cleaned = f"{replacement}{cleaned}"
    return cleaned or replacement
