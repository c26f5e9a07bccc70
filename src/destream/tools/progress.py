"""
Console progress bar for downloads, counted in chunks.

Uses tqdm for rendering. When the terminal width cannot be determined (some
Cygwin/MSYS consoles, pipes) the bar falls back to a plain status line after
every update:

    --- Speed: 2048.0kbits/s, Cursor: 00:01:30.000000
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from tqdm import tqdm

from destream.utils.system import terminal_columns

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 30

_AUTO = object()


class ChunkProgressBar:
    """Progress bar over ``total`` chunks whose position never moves back.

    Args:
        total: Number of chunks of the video
        output: Stream to draw on (default: sys.stdout)
        columns: Terminal width; detected from ``output`` when omitted,
            None forces the degraded text mode
    """

    def __init__(self, total: int, output: TextIO | None = None, columns=_AUTO) -> None:
        self.total = total
        self.output = output or sys.stdout
        if columns is _AUTO:
            columns = terminal_columns(self.output)
        self.columns = columns
        self.position = 0
        self._stopped = False

        if self.degraded:
            logger.warning(
                "Unable to get number of columns from terminal.\n"
                "This happens sometimes in Cygwin/MSYS.\n"
                "No progress bar can be rendered, however the download process "
                "should not be affected."
            )

        bar_size = (columns or DEFAULT_COLUMNS) // 3
        self._bar = tqdm(
            total=total,
            file=self.output,
            unit="chunk",
            bar_format="progress |{bar:" + str(bar_size) + "}| {percentage:3.0f}% {postfix} {remaining}",
            ascii=" ░█",
            dynamic_ncols=False,
            leave=True,
        )

    @property
    def degraded(self) -> bool:
        return not self.columns

    def update(self, chunks: int, bitrate: str = "", timemark: str = "") -> int:
        """Move the bar to ``chunks``, clamped to ``[position, total]``.

        Returns:
            The new position
        """
        if self._stopped:
            return self.position

        target = min(max(chunks, self.position), self.total)
        if target > self.position:
            self._bar.update(target - self.position)
            self.position = target
        if bitrate:
            self._bar.set_postfix_str(bitrate, refresh=False)
        self._bar.refresh()

        if self.degraded:
            self.output.write(f"--- Speed: {bitrate}, Cursor: {timemark}\r")
            self.output.flush()
        return self.position

    def complete(self) -> None:
        self.update(self.total)

    def stop(self) -> None:
        """Close the bar. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        self._bar.close()

    def __enter__(self) -> ChunkProgressBar:
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
