"""
Parse video and group URLs from the command line or a batch file.

Both entry points return two parallel lists: video ids and the output
directory of each video. Group URLs are expanded to their videos through the
API, oldest first.

Batch file format, one URL per line:

    # comments and blank lines are ignored
    https://web.microsoftstream.com/video/<guid>
    https://web.microsoftstream.com/group/<guid> -dir="lectures/week 1"
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from destream.exceptions import InputError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from destream.api.client import ApiClient

logger = logging.getLogger(__name__)

GUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

_VIDEO_URL_RE = re.compile(rf"/video/(?P<guid>{GUID_PATTERN})", re.IGNORECASE)
_GROUP_URL_RE = re.compile(rf"/group/(?P<guid>{GUID_PATTERN})", re.IGNORECASE)
_TRAILING_GUID_RE = re.compile(rf"(?P<guid>{GUID_PATTERN})/?(?:[?#].*)?$")
_INPUT_LINE_RE = re.compile(
    r"^(?P<url>\S+)(?:\s+-dir=(?P<quote>[\"'])(?P<dir>.*?)(?P=quote))?\s*$"
)


def extract_guid(url: str) -> str | None:
    """Return the GUID a URL ends with, or None."""
    match = _TRAILING_GUID_RE.search(url.strip())
    return match.group("guid") if match else None


def _resolve_url(url: str, client: ApiClient | None) -> list[str] | None:
    """Video ids behind one URL, or None if it is neither a video nor a group."""
    if match := _VIDEO_URL_RE.search(url):
        return [match.group("guid")]

    if match := _GROUP_URL_RE.search(url):
        if client is None:
            raise InputError(f"Cannot expand group URL without an API client: {url}")
        from destream.api.metadata import fetch_group_video_ids

        return fetch_group_video_ids(client, match.group("guid"))

    return None


def _ensure_dir(directory: str | Path) -> str:
    path = Path(directory).expanduser()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InputError(f"Cannot create output directory {path}: {e}") from e
    return str(path)


def parse_cli_input(
    urls: Iterable[str],
    out_dir: str | Path,
    client: ApiClient | None = None,
) -> tuple[list[str], list[str]]:
    """Parse URLs given on the command line.

    Args:
        urls: Video or group URLs
        out_dir: Output directory for every video (created if missing)
        client: API client used to expand group URLs

    Returns:
        (video_ids, out_dirs) of equal length

    Raises:
        InputError: If a URL is not a video or group URL
    """
    directory = _ensure_dir(out_dir)
    video_ids: list[str] = []
    for url in urls:
        ids = _resolve_url(url, client)
        if ids is None:
            raise InputError(
                f"Not a video or group URL: {url}",
                suggestion="Use URLs like https://web.microsoftstream.com/video/<id>",
            )
        video_ids.extend(ids)

    return video_ids, [directory] * len(video_ids)


def parse_input_file(
    path: str | Path,
    out_dir: str | Path,
    client: ApiClient | None = None,
) -> tuple[list[str], list[str]]:
    """Parse a batch file of URLs with optional per-line output directories.

    Invalid lines are logged and skipped.

    Raises:
        InputError: If the file cannot be read
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read input file {path}: {e}") from e

    video_ids: list[str] = []
    out_dirs: list[str] = []
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        match = _INPUT_LINE_RE.match(line)
        ids = _resolve_url(match.group("url"), client) if match else None
        if ids is None:
            logger.warning(f"Invalid URL at line {number}, skipping: {line}")
            continue

        directory = _ensure_dir(match.group("dir") or out_dir)
        video_ids.extend(ids)
        out_dirs.extend([directory] * len(ids))

    return video_ids, out_dirs
