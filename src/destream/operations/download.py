"""
Sequential download of a batch of videos through ffmpeg.

Videos are processed strictly in input order, one ffmpeg process at a time.
A failing video aborts the rest of the batch. A partially written file is
removed when its download fails or is interrupted, unless cleanup is
disabled.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from destream.config import defaults
from destream.config.loader import LoginPolicy
from destream.exceptions import MuxingError
from destream.models.session import Session
from destream.models.task import DownloadTask, TaskOutcome
from destream.models.video import Video
from destream.tools.ffmpeg import FFmpegTool, MuxError, MuxProcess, MuxProgress, MuxSuccess
from destream.tools.progress import ChunkProgressBar
from destream.utils.formatting import timemark_to_chunk
from destream.utils.interrupt import on_interrupt
from destream.utils.logging import log_timed

logger = logging.getLogger(__name__)

RefreshFn = Callable[[str], Session]
ProgressFactory = Callable[[int], ChunkProgressBar]


@dataclass(frozen=True)
class DownloadSettings:
    """Per-batch download policy.

    Attributes:
        skip: Skip videos whose output file already exists
        keep_session: Refresh the session before every video after the first
        no_cleanup: Keep partial output files on failure or interrupt
        closed_captions: Mux the captions track when the video has one
        acodec: Audio codec, ``copy`` or ``none`` to drop audio
        vcodec: Video codec, ``copy`` or ``none`` to drop video
        seconds_per_chunk: Playback seconds per progress chunk
    """

    skip: bool = False
    keep_session: bool = False
    no_cleanup: bool = False
    closed_captions: bool = False
    acodec: str = defaults.DEFAULT_CODEC
    vcodec: str = defaults.DEFAULT_CODEC
    seconds_per_chunk: float = defaults.SECONDS_PER_CHUNK


class _TaskCleanup:
    """Idempotent cleanup for one download: stop bar, stop ffmpeg, drop partial file."""

    def __init__(self, task: DownloadTask, bar: ChunkProgressBar, no_cleanup: bool):
        self.task = task
        self.bar = bar
        self.no_cleanup = no_cleanup
        self.process: MuxProcess | None = None
        self.done = False

    def __call__(self) -> None:
        if self.done:
            return
        self.done = True
        self.bar.stop()
        if self.process is not None:
            self.process.terminate()
        if self.no_cleanup:
            return

        out_path = Path(self.task.video.out_path)
        try:
            out_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial file {out_path}: {e}")
        else:
            logger.debug(f"Removed partial file {out_path}")


def _run_task(
    task: DownloadTask,
    settings: DownloadSettings,
    ffmpeg: FFmpegTool,
    progress_factory: ProgressFactory,
) -> None:
    video = task.video
    command = ffmpeg.build_command(video, task.session, settings)
    bar = progress_factory(video.total_chunks)
    cleanup = _TaskCleanup(task, bar, settings.no_cleanup)

    with on_interrupt(cleanup):
        try:
            cleanup.process = ffmpeg.spawn(command)
            with contextlib.closing(cleanup.process.events()) as events:
                for event in events:
                    if isinstance(event, MuxProgress):
                        chunk = timemark_to_chunk(event.timemark, settings.seconds_per_chunk)
                        if chunk is not None:
                            task.advance(chunk)
                        bar.update(task.progress, bitrate=event.bitrate, timemark=event.timemark)
                    elif isinstance(event, MuxSuccess):
                        task.complete()
                        bar.complete()
                        bar.stop()
                        return
                    elif isinstance(event, MuxError):
                        raise MuxingError(
                            f"FFmpeg returned an error: {event.reason}",
                            video_id=video.id,
                            out_path=video.out_path,
                            stderr=event.reason,
                        )
                raise MuxingError(
                    "FFmpeg exited without reporting a result",
                    video_id=video.id,
                    out_path=video.out_path,
                )
        except BaseException:
            task.outcome = TaskOutcome.FAILED
            cleanup()
            raise


def download_videos(
    videos: Sequence[Video],
    session: Session,
    settings: DownloadSettings | None = None,
    *,
    ffmpeg: FFmpegTool | None = None,
    refresh: RefreshFn | None = None,
    progress_factory: ProgressFactory | None = None,
    video_url: Callable[[str], str] | None = None,
) -> list[DownloadTask]:
    """Download every video to its ``out_path``.

    Args:
        videos: Videos with output paths assigned
        session: Session used for the first video
        settings: Download policy
        ffmpeg: Muxing tool (spawn()/build_command())
        refresh: Returns a fresh Session for a video page URL; required
            when ``settings.keep_session`` is on
        progress_factory: Creates the progress bar for a chunk total
        video_url: Maps a video id to the page URL handed to ``refresh``

    Returns:
        One DownloadTask per processed video, in order

    Raises:
        MuxingError: ffmpeg failed; later videos are not attempted
        KeyboardInterrupt: The user interrupted; the current file was cleaned up

    SIGINT cleanup is only registered when called from the main thread.
    """
    settings = settings or DownloadSettings()
    ffmpeg = ffmpeg or FFmpegTool()
    progress_factory = progress_factory or ChunkProgressBar
    video_url = video_url or LoginPolicy().video_url
    if settings.keep_session and refresh is None:
        raise ValueError("keep_session requires a refresh function")

    tasks: list[DownloadTask] = []
    for index, video in enumerate(videos):
        if settings.skip and Path(video.out_path).exists():
            logger.info(f"File already exists, skipping: {video.out_path}")
            tasks.append(DownloadTask(video, session, outcome=TaskOutcome.SKIPPED))
            continue

        if settings.keep_session and index != 0:
            logger.info("Trying to refresh token...")
            session = refresh(video_url(video.id))

        task = DownloadTask(video, session)
        tasks.append(task)

        logger.info(f"Downloading video: {video.title}")
        logger.debug(
            f"Playlist URL: {video.playback_url}\n"
            f"Thumbnail URL: {video.poster_image_url}\n"
            f"Captions URL (may not exist): {video.captions_url}\n"
            f"Total chunks: {video.total_chunks}"
        )
        logger.info("Spawning ffmpeg with access token and HLS URL. This may take a few seconds...")

        start = time.time()
        _run_task(task, settings, ffmpeg, progress_factory)
        log_timed(f"Download finished: {video.out_path}", start)

    return tasks


def simulate_videos(videos: Sequence[Video]) -> None:
    """Log what would be downloaded without downloading anything."""
    for video in videos:
        lines = [
            f"Title:          {video.title}",
            f"OutPath:        {video.out_path}",
            f"Published Date: {video.publish_date}",
            f"Playback URL:   {video.playback_url}",
        ]
        if video.captions_url:
            lines.append(f"CC URL:         {video.captions_url}")
        logger.info("\n" + "\n".join(lines))
