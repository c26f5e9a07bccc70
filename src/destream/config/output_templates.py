"""
Output filename templates and unique output path assignment.

Templates use ``{field}`` placeholders filled from ``Video.template_fields()``:

    {title} - {publishDate} {uniqueId}

Every rendered name is sanitized for the filesystem, then made unique within
the batch and, unless the skip policy is on, against files already on disk.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from destream.config import defaults
from destream.exceptions import InputError
from destream.utils.formatting import sanitize_filename

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from destream.models.video import Video

logger = logging.getLogger(__name__)

TEMPLATE_ELEMENTS = (
    "title",
    "duration",
    "publishDate",
    "publishTime",
    "author",
    "authorEmail",
    "uniqueId",
)

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


def template_placeholders(template: str) -> list[str]:
    """Return the placeholder names used in a template, in order."""
    return _PLACEHOLDER_RE.findall(template)


def validate_template(template: str) -> str:
    """Check that every placeholder is a known template element.

    Args:
        template: Output template string.

    Returns:
        The template, unchanged.

    Raises:
        InputError: If the template is empty or uses an unknown element.
    """
    if not template.strip():
        raise InputError("Output template cannot be empty")

    unknown = [name for name in template_placeholders(template) if name not in TEMPLATE_ELEMENTS]
    if unknown:
        valid = ", ".join(TEMPLATE_ELEMENTS)
        raise InputError(
            f"Unknown output template element(s): {', '.join(unknown)}",
            details={"template": template},
            suggestion=f"Valid elements are: {valid}",
        )
    return template


def render_template(template: str, video: Video) -> str:
    """Fill a template with the video's fields and sanitize the result.

    Unknown placeholders are left as literal text; call validate_template()
    first to reject them.
    """
    fields = video.template_fields()

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in fields:
            return fields[name]
        return match.group(0)

    return sanitize_filename(_PLACEHOLDER_RE.sub(_substitute, template))


def _unique_path(directory: Path, stem: str, extension: str, taken: set[Path], skip: bool) -> Path:
    candidate = directory / f"{stem}.{extension}"
    counter = 1
    while candidate in taken or (candidate.exists() and not skip):
        candidate = directory / f"{stem} ({counter}).{extension}"
        counter += 1
    return candidate


def assign_output_paths(
    videos: Sequence[Video],
    out_dirs: Iterable[str | Path],
    template: str = defaults.DEFAULT_OUTPUT_TEMPLATE,
    extension: str = defaults.DEFAULT_FORMAT,
    skip: bool = False,
) -> list[Video]:
    """Assign a unique ``out_path`` to every video of the batch.

    Args:
        videos: Resolved videos in input order.
        out_dirs: Output directory per video (same order and length).
        template: Filename template (validated).
        extension: Container extension without the dot.
        skip: Skip policy. When on, a path that already exists on disk is
            kept so the orchestrator can skip it instead of renaming.

    Returns:
        Copies of the videos with ``out_path`` set.

    Raises:
        InputError: If the template is invalid or the lists differ in length.
    """
    validate_template(template)
    out_dirs = list(out_dirs)
    if len(out_dirs) != len(videos):
        raise InputError(
            f"Got {len(videos)} videos but {len(out_dirs)} output directories"
        )

    extension = extension.lstrip(".")
    taken: set[Path] = set()
    assigned = []
    for video, out_dir in zip(videos, out_dirs):
        stem = render_template(template, video)
        path = _unique_path(Path(out_dir), stem, extension, taken, skip)
        taken.add(path)
        logger.debug(f"Output path for {video.id}: {path}")
        assigned.append(dataclasses.replace(video, out_path=str(path)))
    return assigned
